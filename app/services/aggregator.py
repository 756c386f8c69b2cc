from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from kubernetes import client

from app.clients.k8s import METRICS_GROUP, METRICS_VERSION
from app.models.k8s import DynamicObject
from app.models.stats import (
    ControllerStats,
    ExtendedPodStats,
    NodeContainerStats,
    NodePodStats,
    NodeStats,
)
from app.services.builders import build_container_stats, build_node_stats, build_pod_stats
from app.services.sink import RecordSink, to_line

POLL_INTERVAL_SECONDS = 30
MISSING_NODE_NAME = "NONE"

ControllerKey = tuple[str, str, str]
UsageKey = tuple[str, str, str]


class ClusterGateway(Protocol):
    def list_pods(self) -> list[client.V1Pod]:
        raise NotImplementedError

    def list_nodes(self) -> list[client.V1Node]:
        raise NotImplementedError

    def list_dynamic(self, group: str, version: str, kind: str) -> list[DynamicObject]:
        raise NotImplementedError


class CycleError(RuntimeError):
    pass


@dataclass
class CycleResult:
    started_at: datetime
    finished_at: datetime | None = None
    pods_scanned: int = 0
    pods_skipped: int = 0
    pod_records: int = 0
    nodes_scanned: int = 0
    node_records: int = 0
    serialization_failures: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _PodScan:
    records: list[ExtendedPodStats] = field(default_factory=list)
    controllers: dict[ControllerKey, ControllerStats] = field(default_factory=dict)
    node_pods: dict[str, NodePodStats] = field(default_factory=dict)
    node_containers: dict[str, NodeContainerStats] = field(default_factory=dict)


class MetricsAggregator:
    """Polls the cluster and emits one record per pod container and per node."""

    def __init__(
        self,
        gateway: ClusterGateway,
        sink: RecordSink,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._gateway = gateway
        self._sink = sink
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.last_result: CycleResult | None = None

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        stop_event = stop_event or threading.Event()
        self._logger.info("Starting metrics collection every %ss", POLL_INTERVAL_SECONDS)
        while not stop_event.is_set():
            try:
                self.run_cycle()
            except CycleError:
                self._logger.exception("Failed to gather metrics server info")
            except Exception as exc:  # noqa: BLE001
                self._logger.exception("Metrics cycle failed")
                if self.last_result is not None and self.last_result.error is None:
                    self.last_result.error = f"cycle failed: {exc}"
                    self.last_result.finished_at = self._clock()
            stop_event.wait(POLL_INTERVAL_SECONDS)
        self._logger.info("Metrics collection stopped")

    def run_cycle(self) -> CycleResult:
        now = self._clock()
        result = CycleResult(started_at=now)
        self.last_result = result
        try:
            pods = self._gateway.list_pods()
            nodes = self._gateway.list_nodes()
            pod_metrics = self._gateway.list_dynamic(METRICS_GROUP, METRICS_VERSION, "PodMetrics")
            node_metrics = self._gateway.list_dynamic(
                METRICS_GROUP, METRICS_VERSION, "NodeMetrics"
            )
        except Exception as exc:  # noqa: BLE001 - Kubernetes client raises many exception types.
            result.error = f"fetch failed: {exc}"
            result.finished_at = self._clock()
            raise CycleError(result.error) from exc

        pod_usage = build_pod_usage_map(pod_metrics)
        node_usage = build_node_usage_map(node_metrics)

        scan = _PodScan()
        for pod in pods:
            result.pods_scanned += 1
            if not self._scan_pod(pod, pod_usage, scan, now):
                result.pods_skipped += 1

        backfill_controller_stats(scan.records, scan.controllers)
        for record in scan.records:
            if self._emit(record.to_dict(), result):
                result.pod_records += 1

        for node_stats in self._scan_nodes(nodes, node_usage, scan, now):
            result.nodes_scanned += 1
            if node_stats is not None and self._emit(node_stats.to_dict(), result):
                result.node_records += 1

        result.finished_at = self._clock()
        self._logger.info(
            "Cycle complete: %d pod records, %d node records (%d pods skipped)",
            result.pod_records,
            result.node_records,
            result.pods_skipped,
        )
        return result

    def _scan_pod(
        self,
        pod: client.V1Pod,
        pod_usage: dict[UsageKey, dict[str, Any]],
        scan: _PodScan,
        now: datetime,
    ) -> bool:
        spec = pod.spec
        status = pod.status
        if spec is None or status is None:
            return False
        if status.conditions is None or status.container_statuses is None:
            return False

        pod_stats = build_pod_stats(pod, now)
        scan.node_pods.setdefault(pod_stats.node, NodePodStats()).inc(pod_stats.phase)

        controller = scan.controllers.setdefault(pod_stats.controller_key, ControllerStats())
        if any(_is_ready(condition) for condition in status.conditions):
            controller.inc_pods_ready()
        controller.inc_pods_total()

        statuses: dict[str, client.V1ContainerStatus] = {}
        for container_status in _chain(status.container_statuses, status.init_container_statuses):
            statuses[container_status.name] = container_status
            controller.inc_containers_total()
            if container_status.ready:
                controller.inc_containers_ready()

        containers = [(container, False) for container in spec.containers or []]
        containers += [(container, True) for container in spec.init_containers or []]
        for container, is_init in containers:
            if not container.name or container.image is None or container.resources is None:
                continue
            container_status = statuses.get(container.name)
            if container_status is None:
                continue
            usage = pod_usage.get((pod_stats.namespace, pod_stats.pod, container.name))
            if usage is None:
                continue

            container_stats = build_container_stats(
                container,
                container_status,
                container_status.state,
                _usage_value(usage, "cpu"),
                _usage_value(usage, "memory"),
                now,
            )
            scan.node_containers.setdefault(pod_stats.node, NodeContainerStats()).inc(
                container_stats.state, container_stats.ready, is_init
            )
            scan.records.append(ExtendedPodStats(pod_stats, container_stats))
        return True

    def _scan_nodes(
        self,
        nodes: list[client.V1Node],
        node_usage: dict[str, dict[str, Any]],
        scan: _PodScan,
        now: datetime,
    ) -> Iterable[NodeStats | None]:
        for node in nodes:
            name = node.metadata.name if node.metadata else None
            if node.spec is None or node.status is None or not name:
                yield None
                continue
            usage = node_usage.get(name)
            if usage is None:
                self._logger.debug("No usage reported for node %s", name)
                yield None
                continue
            yield build_node_stats(
                node,
                scan.node_pods.get(name) or NodePodStats(),
                scan.node_containers.get(name) or NodeContainerStats(),
                _usage_value(usage, "cpu"),
                _usage_value(usage, "memory"),
                now,
            )

    def _emit(self, record: dict[str, Any], result: CycleResult) -> bool:
        try:
            line = to_line(record)
        except (TypeError, ValueError) as exc:
            result.serialization_failures += 1
            self._logger.warning("Failed to serialize record: %s", exc)
            return False
        self._sink.emit(line)
        return True


def build_pod_usage_map(pod_metrics: list[DynamicObject]) -> dict[UsageKey, dict[str, Any]]:
    usage_map: dict[UsageKey, dict[str, Any]] = {}
    for pod_metric in pod_metrics:
        containers = pod_metric.data.get("containers")
        if not isinstance(containers, list):
            continue
        for container in containers:
            if not isinstance(container, dict):
                continue
            container_name = container.get("name")
            if not container_name:
                continue
            key = (pod_metric.namespace or "", pod_metric.name or "", container_name)
            usage_map[key] = container.get("usage") or {}
    return usage_map


def build_node_usage_map(node_metrics: list[DynamicObject]) -> dict[str, dict[str, Any]]:
    usage_map: dict[str, dict[str, Any]] = {}
    for node_metric in node_metrics:
        usage_map[node_metric.name or MISSING_NODE_NAME] = node_metric.data.get("usage") or {}
    return usage_map


def backfill_controller_stats(
    records: list[ExtendedPodStats],
    controllers: dict[ControllerKey, ControllerStats],
) -> None:
    for record in records:
        controller = controllers.get(record.pod_stats.controller_key)
        if controller is not None:
            record.controller_stats.copy_stats(controller)


def _is_ready(condition: client.V1PodCondition) -> bool:
    return (condition.type or "").lower() == "ready" and (condition.status or "").lower() == "true"


def _chain(*groups: list[Any] | None) -> Iterable[Any]:
    for group in groups:
        yield from group or []


def _usage_value(usage: dict[str, Any], key: str) -> str:
    value = usage.get(key)
    return value if isinstance(value, str) else ""
