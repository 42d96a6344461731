"""Type definitions for kuberoll."""

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class WorkloadInfo:
    kind: str  # resource plural, e.g. "deployments"
    namespace: str
    name: str
    manifest: dict[str, Any]  # full object as returned by the cluster

    @property
    def template_annotations(self) -> dict[str, str] | None:
        spec = self.manifest.get("spec") or {}
        template = spec.get("template") or {}
        metadata = template.get("metadata") or {}
        return metadata.get("annotations")


@dataclass
class WorkloadError:
    namespace: str
    kind: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.kind} in {self.namespace}: {self.error}"


@dataclass
class RolloutMetadata:
    start_time: float = field(default_factory=time.monotonic)
    deployments_restarted: int = 0
    statefulsets_restarted: int = 0
    daemonsets_restarted: int = 0
    namespaces_processed: int = 0
    errors: list[WorkloadError] = field(default_factory=list)

    @property
    def total_restarted(self) -> int:
        return (
            self.deployments_restarted
            + self.statefulsets_restarted
            + self.daemonsets_restarted
        )

    @property
    def duration(self) -> float:
        """Seconds elapsed since the run started."""
        return time.monotonic() - self.start_time

    def add_restarted(self, kind: str, count: int) -> None:
        if kind == "deployments":
            self.deployments_restarted += count
        elif kind == "statefulsets":
            self.statefulsets_restarted += count
        elif kind == "daemonsets":
            self.daemonsets_restarted += count
        else:
            raise ValueError(f"Unknown workload kind: {kind}")


class RolloutError(Exception):
    """Raised when the rollout cannot start at all."""
