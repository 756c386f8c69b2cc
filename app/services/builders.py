from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from kubernetes import client

from app.core.quantity import parse_cpu, parse_int, parse_memory
from app.models.stats import (
    ContainerStats,
    NodeContainerStats,
    NodePodStats,
    NodeStats,
    PodStats,
)

STATE_RUNNING = "Running"
STATE_TERMINATED = "Terminated"
STATE_WAITING = "Waiting"


def build_container_stats(
    container: client.V1Container,
    status: client.V1ContainerStatus,
    state: client.V1ContainerState | None,
    cpu_usage: str,
    memory_usage: str,
    now: datetime | None = None,
) -> ContainerStats:
    """Build one container's snapshot from its spec, status and raw usage.

    `state` is normally `status.state`; it is passed separately so callers can
    substitute the union they resolved. Limits and requests stay `None` when
    the container does not declare them.
    """
    now = now or _utcnow()

    container_age = 0
    started = 0
    if state is not None and state.running is not None:
        current_state = STATE_RUNNING
        started_at = state.running.started_at
        if started_at is not None:
            container_age = _millis_between(started_at, now)
            started = _epoch_millis(started_at)
    elif state is not None and state.terminated is not None:
        current_state = STATE_TERMINATED
    else:
        current_state = STATE_WAITING

    image, image_tag = _split_image(container.image)

    last_state, last_reason, last_started, last_finished = _last_lifecycle(status.last_state)
    if not last_state or last_state == current_state:
        last_state, last_reason, last_started, last_finished = "", "", None, None

    limits, requests = _resource_lists(container.resources)

    return ContainerStats(
        container=container.name or "",
        image=image,
        image_tag=image_tag,
        state=current_state,
        container_age=container_age,
        started=started,
        restarts=status.restart_count or 0,
        ready=bool(status.ready),
        last_state=last_state,
        last_reason=last_reason,
        last_started=last_started,
        last_finished=last_finished,
        cpu_usage=parse_cpu(cpu_usage),
        cpu_limit=_optional(limits.get("cpu"), parse_cpu),
        cpu_request=_optional(requests.get("cpu"), parse_cpu),
        memory_usage=parse_memory(memory_usage),
        memory_limit=_optional(limits.get("memory"), parse_memory),
        memory_request=_optional(requests.get("memory"), parse_memory),
    )


def build_pod_stats(pod: client.V1Pod, now: datetime | None = None) -> PodStats:
    now = now or _utcnow()
    metadata = pod.metadata
    spec = pod.spec
    status = pod.status

    controller, controller_type = _controller_details(
        metadata.owner_references if metadata else None
    )

    pod_age = None
    created = None
    if status is not None and status.start_time is not None:
        pod_age = _millis_between(status.start_time, now)
        created = _epoch_millis(status.start_time)

    return PodStats(
        namespace=(metadata.namespace if metadata else None) or "",
        pod=(metadata.name if metadata else None) or "",
        node=(spec.node_name if spec else None) or "",
        phase=(status.phase if status else None) or "",
        ip=(status.pod_ip if status else None) or "",
        priority=spec.priority if spec else None,
        priority_class=(spec.priority_class_name if spec else None) or "",
        qos_class=(status.qos_class if status else None) or "",
        pod_age=pod_age,
        created=created,
        controller=controller,
        controller_type=controller_type,
    )


def build_node_stats(
    node: client.V1Node,
    pod_stats: NodePodStats,
    container_stats: NodeContainerStats,
    cpu_usage: str,
    memory_usage: str,
    now: datetime | None = None,
) -> NodeStats:
    now = now or _utcnow()
    metadata = node.metadata
    spec = node.spec
    status = node.status

    fields: dict[str, Any] = {}

    if metadata is not None and metadata.creation_timestamp is not None:
        fields["age"] = _millis_between(metadata.creation_timestamp, now)
        fields["created"] = _epoch_seconds(metadata.creation_timestamp)

    if status is not None:
        node_info = status.node_info
        if node_info is not None:
            fields["container_runtime_version"] = node_info.container_runtime_version or ""
            fields["kernel_version"] = node_info.kernel_version or ""
            fields["kubelet_version"] = node_info.kubelet_version or ""
            fields["os_image"] = node_info.os_image or ""

        for address in status.addresses or []:
            address_type = (address.type or "").lower()
            if address_type == "internalip":
                fields["ip"] = address.address or ""
            elif address_type == "externalip":
                fields["ip_external"] = address.address or ""

        allocatable = status.allocatable or {}
        capacity = status.capacity or {}
        fields["cpu_allocatable"] = _cores_to_millis(allocatable.get("cpu"))
        fields["cpu_capacity"] = _cores_to_millis(capacity.get("cpu"))
        fields["memory_allocatable"] = _optional(allocatable.get("memory"), parse_memory)
        fields["memory_capacity"] = _optional(capacity.get("memory"), parse_memory)
        fields["pods_allocatable"] = parse_int(allocatable.get("pods"))
        fields["pods_capacity"] = parse_int(capacity.get("pods"))

        fields.update(_ready_condition(status.conditions, now))

    if spec is not None and spec.unschedulable is not None:
        fields["unschedulable"] = bool(spec.unschedulable)

    return NodeStats(
        node=(metadata.name if metadata else None) or "",
        pod_stats=NodePodStats(**pod_stats.to_dict()),
        container_stats=NodeContainerStats(**container_stats.to_dict()),
        cpu_usage=parse_cpu(cpu_usage),
        memory_usage=parse_memory(memory_usage),
        **fields,
    )


def _ready_condition(
    conditions: list[client.V1NodeCondition] | None, now: datetime
) -> dict[str, Any]:
    for condition in conditions or []:
        if (condition.type or "").lower() != "ready":
            continue
        fields: dict[str, Any] = {
            "ready": (condition.status or "").lower() == "true",
            "ready_status": condition.status or "",
            "ready_message": condition.message or "",
        }
        if condition.last_heartbeat_time is not None:
            fields["ready_heartbeat_age"] = _millis_between(condition.last_heartbeat_time, now)
            fields["ready_heartbeat_time"] = _epoch_seconds(condition.last_heartbeat_time)
        if condition.last_transition_time is not None:
            fields["ready_transition_age"] = _millis_between(condition.last_transition_time, now)
            fields["ready_transition_time"] = _epoch_seconds(condition.last_transition_time)
        return fields
    return {}


def _last_lifecycle(
    last_state: client.V1ContainerState | None,
) -> tuple[str, str, int | None, int | None]:
    if last_state is None:
        return "", "", None, None
    if last_state.terminated is not None:
        terminated = last_state.terminated
        return (
            STATE_TERMINATED,
            terminated.reason or "",
            _optional_epoch_millis(terminated.started_at),
            _optional_epoch_millis(terminated.finished_at),
        )
    if last_state.running is not None:
        return STATE_RUNNING, "", _optional_epoch_millis(last_state.running.started_at), None
    if last_state.waiting is not None:
        return STATE_WAITING, "", None, None
    return "", "", None, None


def _controller_details(
    owner_references: list[client.V1OwnerReference] | None,
) -> tuple[str, str]:
    for owner_reference in owner_references or []:
        if owner_reference.controller is True:
            return owner_reference.name or "", owner_reference.kind or ""
    return "", ""


def _split_image(image: str | None) -> tuple[str, str]:
    if not image:
        return "", ""
    name, separator, tag = image.rpartition(":")
    if not separator:
        return image, ""
    return name, tag


def _resource_lists(
    resources: client.V1ResourceRequirements | None,
) -> tuple[dict[str, str], dict[str, str]]:
    if resources is None:
        return {}, {}
    return resources.limits or {}, resources.requests or {}


def _optional(value: str | None, parser: Callable[[str], int]) -> int | None:
    if value is None:
        return None
    return parser(str(value))


def _cores_to_millis(value: object | None) -> int | None:
    cores = parse_int(value)
    if cores is None:
        return None
    return cores * 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _millis_between(start: datetime, end: datetime) -> int:
    return int((_as_aware(end) - _as_aware(start)).total_seconds() * 1000)


def _epoch_millis(value: datetime) -> int:
    return int(_as_aware(value).timestamp() * 1000)


def _optional_epoch_millis(value: datetime | None) -> int | None:
    if value is None:
        return None
    return _epoch_millis(value)


def _epoch_seconds(value: datetime) -> int:
    return int(_as_aware(value).timestamp())
