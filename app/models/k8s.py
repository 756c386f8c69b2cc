from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

_ENVELOPE_KEYS = ("metadata", "kind", "apiVersion")


@dataclass(frozen=True)
class DynamicObject:
    """Loosely typed API object, e.g. a metrics-server PodMetrics item."""

    name: str | None
    namespace: str | None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> DynamicObject:
        metadata = item.get("metadata") or {}
        return cls(
            name=metadata.get("name"),
            namespace=metadata.get("namespace"),
            data={key: value for key, value in item.items() if key not in _ENVELOPE_KEYS},
        )
