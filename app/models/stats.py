from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

_PHASE_FIELDS = {
    "failed": "pods_failed",
    "pending": "pods_pending",
    "running": "pods_running",
    "succeeded": "pods_succeeded",
    "unknown": "pods_unknown",
}


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop absent values; zero and False are kept."""
    return {key: value for key, value in payload.items() if value is not None and value != ""}


@dataclass(frozen=True)
class ContainerStats:
    container: str
    state: str
    ready: bool
    restarts: int
    cpu_usage: int
    memory_usage: int
    image: str = ""
    image_tag: str = ""
    container_age: int = 0
    started: int = 0
    last_state: str = ""
    last_reason: str = ""
    last_started: int | None = None
    last_finished: int | None = None
    cpu_limit: int | None = None
    cpu_request: int | None = None
    memory_limit: int | None = None
    memory_request: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(asdict(self))


@dataclass(frozen=True)
class PodStats:
    namespace: str = ""
    pod: str = ""
    node: str = ""
    phase: str = ""
    ip: str = ""
    priority: int | None = None
    priority_class: str = ""
    qos_class: str = ""
    pod_age: int | None = None
    created: int | None = None
    controller: str = ""
    controller_type: str = ""
    resource: str = "container"
    type: str = "metric"

    @property
    def controller_key(self) -> tuple[str, str, str]:
        return (self.namespace, self.controller_type, self.controller)

    def to_dict(self) -> dict[str, Any]:
        return _compact(asdict(self))


@dataclass
class ControllerStats:
    pods_total: int = 0
    pods_ready: int = 0
    containers_total: int = 0
    containers_ready: int = 0

    def inc_pods_total(self) -> None:
        self.pods_total += 1

    def inc_pods_ready(self) -> None:
        self.pods_ready += 1

    def inc_containers_total(self) -> None:
        self.containers_total += 1

    def inc_containers_ready(self) -> None:
        self.containers_ready += 1

    def copy_stats(self, other: ControllerStats) -> None:
        self.pods_total = other.pods_total
        self.pods_ready = other.pods_ready
        self.containers_total = other.containers_total
        self.containers_ready = other.containers_ready

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class NodePodStats:
    pods_failed: int = 0
    pods_pending: int = 0
    pods_running: int = 0
    pods_succeeded: int = 0
    pods_unknown: int = 0
    pods_total: int = 0

    def inc(self, phase: str | None) -> None:
        self.pods_total += 1
        attr = _PHASE_FIELDS.get((phase or "").lower(), "pods_unknown")
        setattr(self, attr, getattr(self, attr) + 1)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class NodeContainerStats:
    containers_init: int = 0
    containers_ready: int = 0
    containers_running: int = 0
    containers_terminated: int = 0
    containers_waiting: int = 0
    containers_total: int = 0

    def inc(self, state: str | None, ready: bool, is_init: bool) -> None:
        if is_init:
            self.containers_init += 1

        normalized = (state or "").lower()
        if normalized == "waiting":
            self.containers_waiting += 1
            self.containers_total += 1
        elif normalized == "terminated":
            self.containers_terminated += 1
            self.containers_total += 1
        elif normalized == "running":
            self.containers_running += 1
            self.containers_total += 1
            if ready:
                self.containers_ready += 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ExtendedPodStats:
    pod_stats: PodStats
    container_stats: ContainerStats
    controller_stats: ControllerStats = field(default_factory=ControllerStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.pod_stats.to_dict(),
            **self.container_stats.to_dict(),
            **self.controller_stats.to_dict(),
        }


@dataclass(frozen=True)
class NodeStats:
    node: str
    pod_stats: NodePodStats
    container_stats: NodeContainerStats
    cpu_usage: int = 0
    memory_usage: int = 0
    age: int | None = None
    created: int | None = None
    container_runtime_version: str = ""
    kernel_version: str = ""
    kubelet_version: str = ""
    os_image: str = ""
    ip: str = ""
    ip_external: str = ""
    cpu_allocatable: int | None = None
    cpu_capacity: int | None = None
    memory_allocatable: int | None = None
    memory_capacity: int | None = None
    pods_allocatable: int | None = None
    pods_capacity: int | None = None
    ready: bool = False
    ready_status: str = ""
    ready_message: str = ""
    ready_heartbeat_age: int | None = None
    ready_heartbeat_time: int | None = None
    ready_transition_age: int | None = None
    ready_transition_time: int | None = None
    unschedulable: bool = False
    resource: str = "node"
    type: str = "metric"

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("pod_stats")
        payload.pop("container_stats")
        return {
            **_compact(payload),
            **self.pod_stats.to_dict(),
            **self.container_stats.to_dict(),
        }
