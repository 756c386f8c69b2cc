from __future__ import annotations

import logging
from typing import Any

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from app.models.k8s import DynamicObject

METRICS_GROUP = "metrics.k8s.io"
METRICS_VERSION = "v1beta1"

# metrics.k8s.io only serves these two kinds
_KIND_PLURALS = {
    (METRICS_GROUP, "PodMetrics"): "pods",
    (METRICS_GROUP, "NodeMetrics"): "nodes",
}


class KubernetesClient:
    def __init__(self, timeout_seconds: int) -> None:
        self._logger = logging.getLogger(__name__)
        self._timeout_seconds = timeout_seconds
        self._core_api = self._build_client()
        self._custom_api = client.CustomObjectsApi() if self._core_api else None

    @property
    def configured(self) -> bool:
        return self._core_api is not None

    def list_pods(self) -> list[client.V1Pod]:
        core_api = self._require(self._core_api)
        response = core_api.list_pod_for_all_namespaces(_request_timeout=self._timeout_seconds)
        return list(response.items or [])

    def list_nodes(self) -> list[client.V1Node]:
        core_api = self._require(self._core_api)
        response = core_api.list_node(_request_timeout=self._timeout_seconds)
        return list(response.items or [])

    def list_dynamic(self, group: str, version: str, kind: str) -> list[DynamicObject]:
        plural = _KIND_PLURALS.get((group, kind))
        if plural is None:
            raise ValueError(f"unable to resolve {group}/{version} kind {kind}")
        custom_api = self._require(self._custom_api)
        response = custom_api.list_cluster_custom_object(
            group=group,
            version=version,
            plural=plural,
            _request_timeout=self._timeout_seconds,
        )
        return [DynamicObject.from_item(item) for item in _items(response)]

    def _build_client(self) -> client.CoreV1Api | None:
        try:
            config.load_incluster_config()
            self._logger.info("Loaded in-cluster Kubernetes config")
        except ConfigException:
            try:
                config.load_kube_config()
                self._logger.info("Loaded kubeconfig for local development")
            except ConfigException as exc:
                self._logger.warning("Failed to configure Kubernetes client: %s", exc)
                return None
        return client.CoreV1Api()

    @staticmethod
    def _require(api: Any) -> Any:
        if api is None:
            raise RuntimeError("kubernetes client is not configured")
        return api


def _items(response: object) -> list[dict[str, Any]]:
    if not isinstance(response, dict):
        return []
    items = response.get("items") or []
    return [item for item in items if isinstance(item, dict)]
