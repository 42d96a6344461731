"""Rolling restart operations for kuberoll."""

import time
from datetime import datetime
from typing import Any, Protocol

from kuberoll.kubernetes import WORKLOAD_KINDS
from kuberoll.types import RolloutError, RolloutMetadata, WorkloadError, WorkloadInfo

RESTARTED_AT_ANNOTATION = "kubectl.kubernetes.io/restartedAt"


class Cluster(Protocol):
    def list_namespaces(self, timeout: float | None = None) -> list[str]: ...

    def list_workloads(
        self, kind: str, namespace: str, timeout: float | None = None
    ) -> list[WorkloadInfo]: ...

    def replace_workload(
        self, workload: WorkloadInfo, timeout: float | None = None
    ) -> None: ...


# ===== Filtering and annotation =====


def matches_filter(name: str, pod_filter: str) -> bool:
    return pod_filter.lower() in name.lower()


def format_restart_timestamp(now: datetime | None = None) -> str:
    """Format a timestamp as RFC 3339 with seconds precision, e.g. 2024-05-01T12:00:00+02:00."""
    if now is None:
        now = datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()

    stamp = now.replace(microsecond=0).isoformat()
    if stamp.endswith("+00:00"):
        stamp = stamp[: -len("+00:00")] + "Z"
    return stamp


def stamp_restart_annotation(
    workload: WorkloadInfo, now: datetime | None = None
) -> str:
    """Set the restartedAt annotation on the workload's pod template.

    Missing spec/template/metadata/annotations mappings are created. Any
    existing value is overwritten. Returns the timestamp written.
    """
    node = workload.manifest
    for key in ("spec", "template", "metadata", "annotations"):
        if node.get(key) is None:
            node[key] = {}
        node = node[key]

    stamp = format_restart_timestamp(now)
    node[RESTARTED_AT_ANNOTATION] = stamp
    return stamp


# ===== Per-kind restart =====


class WorkloadAdapter:
    """One workload kind on one cluster, bounded by the run deadline."""

    def __init__(self, cluster: Cluster, kind: str, deadline: float | None = None):
        self.cluster = cluster
        self.kind = kind
        self.deadline = deadline

    def _remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def list(self, namespace: str) -> list[WorkloadInfo]:
        return self.cluster.list_workloads(
            self.kind, namespace, timeout=self._remaining()
        )

    def update(self, workload: WorkloadInfo) -> None:
        self.cluster.replace_workload(workload, timeout=self._remaining())


def restart_workloads(
    adapter: WorkloadAdapter, namespace: str, pod_filter: str, log: Any
) -> int:
    """Restart every workload of one kind in a namespace whose name matches.

    A listing failure propagates. A workload that cannot be stamped or
    updated is logged and skipped. Returns the number of workloads
    successfully restarted.
    """
    workloads = adapter.list(namespace)
    kind_label = adapter.kind.rstrip("s")

    count = 0
    for workload in workloads:
        if not matches_filter(workload.name, pod_filter):
            continue

        log.info(
            f"Restarting {kind_label}",
            namespace=namespace,
            **{kind_label: workload.name},
        )

        try:
            stamp_restart_annotation(workload)
            adapter.update(workload)
        except Exception as e:
            log.error(
                f"Failed to restart {kind_label}",
                namespace=namespace,
                error=str(e),
                **{kind_label: workload.name},
            )
            continue

        count += 1
    return count


# ===== Rollout =====


class RolloutClient:
    """Rolling restart of matching workloads across every namespace.

    Usage:

        rc = RolloutClient(KubectlCluster(), "database", get_logger("rollout"))
        metadata = rc.run()
    """

    def __init__(self, cluster: Cluster, pod_filter: str, logger: Any):
        if cluster is None:
            raise ValueError("A cluster handle is required.")
        self.cluster = cluster
        self.pod_filter = pod_filter
        self.log = logger

    def run(self, timeout: float | None = None) -> RolloutMetadata:
        """Restart every Deployment, StatefulSet and DaemonSet whose name contains the filter.

        The restart sets the pod template restartedAt annotation, which makes
        Kubernetes roll the pods the same way `kubectl rollout restart` does.

        Only a failure to list namespaces is fatal and raises RolloutError.
        A workload listing failure is recorded in the returned metadata and
        the run moves on; a failed update of a single workload is only logged.

        `timeout` bounds the whole run in seconds; once it has passed every
        remaining cluster call fails.
        """
        metadata = RolloutMetadata()
        deadline = None if timeout is None else metadata.start_time + timeout

        try:
            namespaces = self.cluster.list_namespaces(
                timeout=None if deadline is None else deadline - time.monotonic()
            )
        except Exception as e:
            raise RolloutError("failed to list namespaces") from e

        adapters = [
            WorkloadAdapter(self.cluster, kind, deadline) for kind in WORKLOAD_KINDS
        ]

        for namespace in namespaces:
            metadata.namespaces_processed += 1
            self.log.info("Checking namespace", namespace=namespace)

            for adapter in adapters:
                try:
                    count = restart_workloads(
                        adapter, namespace, self.pod_filter, self.log
                    )
                except Exception as e:
                    metadata.errors.append(WorkloadError(namespace, adapter.kind, e))
                    self.log.error(
                        f"Failed to restart {adapter.kind}",
                        namespace=namespace,
                        error=str(e),
                    )
                    continue

                metadata.add_restarted(adapter.kind, count)

        self.log.info(
            "Rollout completed",
            total_restarted=metadata.total_restarted,
            deployments=metadata.deployments_restarted,
            statefulsets=metadata.statefulsets_restarted,
            daemonsets=metadata.daemonsets_restarted,
            namespaces_checked=metadata.namespaces_processed,
            errors_count=len(metadata.errors),
            duration=f"{metadata.duration:.3f}s",
        )
        return metadata
