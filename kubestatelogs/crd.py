"""Generic collection of custom resources."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .base import BaseHandler, LogEntryMetadata, build_metadata, should_include_namespace

RESOURCE_TYPE = "crd"


@dataclass(kw_only=True)
class CRDData(LogEntryMetadata):
    """Logged state of a custom resource."""

    api_version: str = ""
    kind: str = ""
    spec: dict[str, Any] = field(default_factory=dict)
    status: dict[str, Any] = field(default_factory=dict)
    custom_fields: dict[str, Any] = field(default_factory=dict)


def extract_field(obj: Any, path: str) -> Any:
    """Follow a dot-separated path through nested mappings; None if any step is missing."""
    current = obj
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


class CRDHandler(BaseHandler):
    """Collects instances of one custom resource, identified by (group, version, resource)."""

    def __init__(
        self,
        client: Any,
        gvr: tuple[str, str, str],
        resource_name: str,
        custom_fields: Optional[Sequence[str]] = None,
    ) -> None:
        super().__init__(client)
        self.group, self.version, self.resource = gvr
        self.resource_name = resource_name
        self.custom_fields = list(custom_fields or [])

    @property
    def api_version(self) -> str:
        """The apiVersion that objects of this resource carry."""
        return f"{self.group}/{self.version}" if self.group else self.version

    @property
    def store_name(self) -> str:
        return f"{self.resource}.{self.group}" if self.group else self.resource

    def setup_informer(self, factory, logger, resync_period=0) -> None:
        """Attach the shared store for this custom resource."""
        self.setup_base_informer(factory.store(self.store_name), logger)

    def collect(self, namespaces: Sequence[str]) -> list[CRDData]:
        """Return one entry per cached object of this resource in the selected namespaces."""
        if self.informer is None:
            return []
        list_time = datetime.now(timezone.utc)
        entries = []
        for obj in self.informer.list():
            if not isinstance(obj, Mapping) or obj.get("apiVersion") != self.api_version:
                continue
            namespace = (obj.get("metadata") or {}).get("namespace") or ""
            if not should_include_namespace(namespaces, namespace):
                continue
            entry = self.create_log_entry(obj)
            entry.timestamp = list_time
            entries.append(entry)
        return entries

    def create_log_entry(self, obj: Mapping[str, Any]) -> CRDData:
        """Build the log entry with spec, status and the configured custom fields."""
        spec = obj.get("spec")
        status = obj.get("status")
        custom = {}
        for path in self.custom_fields:
            value = extract_field(obj, path)
            if value is not None:
                custom[path] = value
        return CRDData(
            **build_metadata(obj, RESOURCE_TYPE),
            api_version=obj.get("apiVersion") or "",
            kind=obj.get("kind") or "",
            spec=dict(spec) if isinstance(spec, Mapping) else {},
            status=dict(status) if isinstance(status, Mapping) else {},
            custom_fields=custom,
        )