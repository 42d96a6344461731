import typer
from rich.markup import escape

from kuberoll.kubernetes import WORKLOAD_KINDS, KubectlCluster, resolve_kubeconfig
from kuberoll.log import configure_logging, get_logger
from kuberoll.operations import RESTARTED_AT_ANNOTATION, RolloutClient
from kuberoll.types import RolloutError
from kuberoll.ui import (
    print_error,
    print_info,
    print_step,
    print_success,
    render_summary_table,
)

app = typer.Typer()


@app.command(help="Rolling restart of every workload whose name contains the filter.")
def restart(
    pod_filter: str = typer.Option(
        "database",
        "--filter",
        "-f",
        envvar="KUBEROLL_FILTER",
        help="Case-insensitive substring to match workload names against.",
    ),
    kubeconfig: str = typer.Option(
        None,
        "--kubeconfig",
        help="Path to the kubeconfig file. Defaults to $KUBECONFIG, then ~/.kube/config.",
    ),
    context: str = typer.Option(
        None, "--context", help="The kubeconfig context to use."
    ),
    timeout: float = typer.Option(
        None,
        "--timeout",
        help="Deadline in seconds for the whole run. Calls after it fail.",
    ),
    request_timeout: str = typer.Option(
        None,
        "--request-timeout",
        help="Timeout passed to each kubectl call, e.g. '30s'.",
    ),
    json_logs: bool = typer.Option(
        False, "--json-logs", envvar="KUBEROLL_JSON_LOGS", help="Emit JSON log lines."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logs."),
):
    configure_logging(verbose=verbose, json_logs=json_logs)
    log = get_logger("rollout")

    cluster = KubectlCluster(
        kubeconfig=kubeconfig or resolve_kubeconfig(),
        context=context,
        request_timeout=request_timeout,
    )

    print_step(
        f"Restarting workloads matching [cyan bold]{escape(repr(pod_filter))}[/cyan bold]..."
    )
    rc = RolloutClient(cluster, pod_filter, log)
    try:
        metadata = rc.run(timeout=timeout)
    except RolloutError as e:
        log.error("Rollout failed", error=str(e), cause=str(e.__cause__))
        print_error(f"{e}: {e.__cause__}")
        raise typer.Exit(code=1)

    render_summary_table(metadata)
    if metadata.errors:
        print_info(
            f"Rollout finished with {len(metadata.errors)} error(s); see the log for details.",
            prefix="⚠️",
        )
    else:
        print_success(f"Rollout finished: {metadata.total_restarted} workload(s) restarted")


@app.command(help="List the workload kinds that are restarted.")
def kinds():
    for kind in WORKLOAD_KINDS:
        typer.echo(kind)
    typer.echo(f"Restart annotation: {RESTARTED_AT_ANNOTATION}")


if __name__ == "__main__":
    app()
