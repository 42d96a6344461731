import os

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from kuberoll.types import RolloutMetadata

# Global console for UI functions
_console = Console()

# Plain output for CI logs and other non-interactive environments
_use_simple_ui = os.getenv("KUBEROLL_SIMPLE_UI") == "1"


def render_summary_table(metadata: RolloutMetadata):
    table = Table(title="Rollout summary")

    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Restarted", style="green", justify="right")

    table.add_row("Deployments", str(metadata.deployments_restarted))
    table.add_row("StatefulSets", str(metadata.statefulsets_restarted))
    table.add_row("DaemonSets", str(metadata.daemonsets_restarted))
    table.add_row("[bold]Total[/bold]", f"[bold]{metadata.total_restarted}[/bold]")

    _console.print(table)
    _console.print(
        f"Namespaces checked: [cyan]{metadata.namespaces_processed}[/cyan]  "
        f"Errors: [{'red' if metadata.errors else 'green'}]{len(metadata.errors)}[/]  "
        f"Duration: [cyan]{metadata.duration:.2f}s[/cyan]"
    )

    if metadata.errors:
        render_errors(metadata)


def render_errors(metadata: RolloutMetadata):
    if _use_simple_ui:
        _console.print("[red]Errors:[/red]")
        for err in metadata.errors:
            _console.print(f"  - {err}", markup=False)
        return

    table = Table()
    table.add_column("Namespace", style="magenta", no_wrap=True)
    table.add_column("Kind", style="cyan")
    table.add_column("Error", style="red")

    for err in metadata.errors:
        table.add_row(err.namespace, err.kind, escape(str(err.error)))

    _console.print(Panel(table, title="Errors", border_style="red", expand=False))


def print_success(message: str, prefix: str = "✅"):
    """Print a success message."""
    _console.print(f"[green]{prefix}[/green] {message}")


def print_info(message: str, prefix: str = "ℹ️"):
    """Print an info message."""
    _console.print(f"[blue]{prefix}[/blue]  {message}")


def print_step(message: str, prefix: str = "🔧"):
    """Print a step/progress message."""
    _console.print(f"[cyan]{prefix}[/cyan] {message}")


def print_error(message: str, prefix: str = "❌"):
    _console.print(f"[red]{prefix}[/red] {escape(message)}")
