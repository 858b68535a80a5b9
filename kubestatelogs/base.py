"""Shared building blocks for resource handlers: object stores, metadata and filtering."""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol


class EntryLogger(Protocol):
    """Anything that can write a log entry."""

    def log(self, entry: Any) -> None:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _object_key(obj: Mapping[str, Any]) -> str:
    meta = obj.get("metadata") or {}
    namespace = meta.get("namespace") or ""
    name = meta.get("name") or ""
    return f"{namespace}/{name}" if namespace else name


def _parse_time(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class ObjectStore:
    """A thread-safe cache of Kubernetes objects keyed by namespace and name."""

    def __init__(self, objects: Sequence[Mapping[str, Any]] = ()) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, Mapping[str, Any]] = {}
        for obj in objects:
            self.add(obj)

    def add(self, obj: Mapping[str, Any]) -> None:
        """Insert or replace an object."""
        key = _object_key(obj)
        with self._lock:
            self._items[key] = obj

    def delete(self, obj: Mapping[str, Any]) -> None:
        """Remove an object; removing an unknown object does nothing."""
        key = _object_key(obj)
        with self._lock:
            self._items.pop(key, None)

    def list(self):
        """Return a snapshot of all cached objects."""
        with self._lock:
            return list(self._items.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class InformerFactory:
    """Hands out one shared object store per resource type."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stores: dict[str, ObjectStore] = {}

    def store(self, resource: str) -> ObjectStore:
        """Return the store for a resource (e.g. "configmaps"), creating it on first use."""
        with self._lock:
            return self._stores.setdefault(resource, ObjectStore())


@dataclass(kw_only=True)
class LogEntryMetadata:
    """Fields common to every logged resource."""

    timestamp: datetime = field(default_factory=_utc_now)
    resource_type: str = ""
    name: str = ""
    namespace: str = ""
    created_timestamp: int = 0
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    created_by_kind: str = ""
    created_by_name: str = ""


class BaseHandler:
    """State and helpers shared by every resource handler."""

    def __init__(self, client: Any = None) -> None:
        self.client = client
        self.informer: Optional[ObjectStore] = None
        self.logger: Optional[EntryLogger] = None

    def setup_base_informer(self, informer: ObjectStore, logger: EntryLogger) -> None:
        """Attach the object store and logger this handler works with."""
        self.informer = informer
        self.logger = logger

    def objects(self, kind: str) -> Iterator[Mapping[str, Any]]:
        """Yield the cached objects of the given kind, skipping anything else."""
        if self.informer is None:
            return
        for obj in self.informer.list():
            if isinstance(obj, Mapping) and obj.get("kind") == kind:
                yield obj


def should_include_namespace(namespaces: Sequence[str], namespace: str) -> bool:
    """True when no namespace filter is set or the namespace is listed."""
    if not namespaces:
        return True
    return namespace in namespaces


def owner_reference_info(obj: Mapping[str, Any]) -> tuple[str, str]:
    """Return the kind and name of the object's first owner, or empty strings."""
    owners = (obj.get("metadata") or {}).get("ownerReferences") or []
    if not owners:
        return "", ""
    first = owners[0]
    return first.get("kind") or "", first.get("name") or ""


def build_metadata(obj: Mapping[str, Any], resource_type: str) -> dict[str, Any]:
    """Return the common metadata fields of obj as keyword arguments for a LogEntryMetadata."""
    meta = obj.get("metadata") or {}
    created = _parse_time(meta.get("creationTimestamp"))
    kind, name = owner_reference_info(obj)
    return {
        "timestamp": _utc_now(),
        "resource_type": resource_type,
        "name": meta.get("name") or "",
        "namespace": meta.get("namespace") or "",
        "created_timestamp": int(created.timestamp()) if created else 0,
        "labels": dict(meta.get("labels") or {}),
        "annotations": dict(meta.get("annotations") or {}),
        "created_by_kind": kind,
        "created_by_name": name,
    }