"""Kubernetes operations for kuberoll."""

import json
import os
import subprocess
from pathlib import Path

from kuberoll.types import WorkloadInfo

WORKLOAD_KINDS = ("deployments", "statefulsets", "daemonsets")


def resolve_kubeconfig() -> str | None:
    """Return the kubeconfig path to use: $KUBECONFIG wins over ~/.kube/config."""
    env_kubeconfig = os.environ.get("KUBECONFIG")
    if env_kubeconfig:
        return env_kubeconfig

    try:
        home = Path.home()
    except RuntimeError:
        return None
    return str(home / ".kube" / "config")


class KubectlError(subprocess.CalledProcessError):
    """A failed kubectl call. Its message is kubectl's own stderr when there is one."""

    def __str__(self) -> str:
        stderr = (self.stderr or "").strip()
        if stderr:
            return stderr
        return super().__str__()


class KubectlCluster:
    """Cluster API handle backed by kubectl.

    Nothing is executed until one of the list/replace methods is called.
    """

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        request_timeout: str | None = None,
    ):
        self.kubeconfig = kubeconfig
        self.context = context
        self.request_timeout = request_timeout

    def _base_cmd(self) -> list[str]:
        cmd = ["kubectl"]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        if self.context:
            cmd.extend(["--context", self.context])
        if self.request_timeout:
            cmd.extend(["--request-timeout", self.request_timeout])
        return cmd

    def _run(
        self,
        args: list[str],
        timeout: float | None = None,
        stdin: str | None = None,
    ) -> str:
        if timeout is not None and timeout <= 0:
            raise TimeoutError("deadline exceeded before kubectl call")

        cmd = self._base_cmd() + args
        result = subprocess.run(
            cmd,
            input=stdin,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
        if result.returncode != 0:
            raise KubectlError(
                result.returncode, cmd, result.stdout, result.stderr
            )
        return result.stdout

    def list_namespaces(self, timeout: float | None = None) -> list[str]:
        output = self._run(["get", "namespaces", "-o", "json"], timeout=timeout)
        namespaces_json = json.loads(output)
        return [item["metadata"]["name"] for item in namespaces_json.get("items", [])]

    def list_workloads(
        self, kind: str, namespace: str, timeout: float | None = None
    ) -> list[WorkloadInfo]:
        output = self._run(
            ["get", kind, "-n", namespace, "-o", "json"], timeout=timeout
        )
        workloads_json = json.loads(output)

        return [
            WorkloadInfo(
                kind=kind,
                namespace=namespace,
                name=item["metadata"]["name"],
                manifest=item,
            )
            for item in workloads_json.get("items", [])
        ]

    def replace_workload(
        self, workload: WorkloadInfo, timeout: float | None = None
    ) -> None:
        self._run(
            ["replace", "-n", workload.namespace, "-f", "-", "-o", "json"],
            timeout=timeout,
            stdin=json.dumps(workload.manifest),
        )
