"""Collection of DaemonSet state."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .base import BaseHandler, LogEntryMetadata, build_metadata, should_include_namespace

RESOURCE_TYPE = "daemonset"
KIND = "DaemonSet"


def condition_status(status: Any) -> Optional[bool]:
    """Map a condition status ("True", "False", "Unknown") to True, False or None."""
    if status == "True":
        return True
    if status == "False":
        return False
    return None


def _split_conditions(
    conditions: Iterable[Mapping[str, Any]],
) -> tuple[Optional[bool], Optional[bool], Optional[bool], dict[str, Optional[bool]]]:
    """Pick out Available, Progressing and ReplicaFailure; return the rest as a map."""
    available = progressing = replica_failure = None
    others: dict[str, Optional[bool]] = {}
    for condition in conditions:
        value = condition_status(condition.get("status"))
        kind = str(condition.get("type") or "")
        if kind == "Available":
            available = value
        elif kind == "Progressing":
            progressing = value
        elif kind == "ReplicaFailure":
            replica_failure = value
        else:
            others[kind] = value
    return available, progressing, replica_failure, others


@dataclass(kw_only=True)
class DaemonSetData(LogEntryMetadata):
    """Logged state of a DaemonSet."""

    desired_number_scheduled: int = 0
    current_number_scheduled: int = 0
    number_ready: int = 0
    number_available: int = 0
    number_unavailable: int = 0
    number_misscheduled: int = 0
    updated_number_scheduled: int = 0
    observed_generation: int = 0
    condition_available: Optional[bool] = None
    condition_progressing: Optional[bool] = None
    condition_replica_failure: Optional[bool] = None
    conditions: dict[str, Optional[bool]] = field(default_factory=dict)
    update_strategy: str = ""
    metadata_generation: int = 0
    collision_count: Optional[int] = None


class DaemonSetHandler(BaseHandler):
    """Collects DaemonSets from the cache."""

    def setup_informer(self, factory, logger, resync_period=0) -> None:
        """Attach the shared DaemonSet store."""
        self.setup_base_informer(factory.store("daemonsets"), logger)

    def collect(self, namespaces: Sequence[str]) -> list[DaemonSetData]:
        """Return one entry per cached DaemonSet in the selected namespaces."""
        list_time = datetime.now(timezone.utc)
        entries = []
        for daemonset in self.objects(KIND):
            namespace = (daemonset.get("metadata") or {}).get("namespace") or ""
            if not should_include_namespace(namespaces, namespace):
                continue
            entry = self.create_log_entry(daemonset)
            entry.timestamp = list_time
            entries.append(entry)
        return entries

    def create_log_entry(self, daemonset: Mapping[str, Any]) -> DaemonSetData:
        """Build the log entry for one DaemonSet."""
        spec = daemonset.get("spec") or {}
        status = daemonset.get("status") or {}
        meta = daemonset.get("metadata") or {}
        available, progressing, replica_failure, others = _split_conditions(
            status.get("conditions") or []
        )
        return DaemonSetData(
            **build_metadata(daemonset, RESOURCE_TYPE),
            desired_number_scheduled=int(status.get("desiredNumberScheduled") or 0),
            current_number_scheduled=int(status.get("currentNumberScheduled") or 0),
            number_ready=int(status.get("numberReady") or 0),
            number_available=int(status.get("numberAvailable") or 0),
            number_unavailable=int(status.get("numberUnavailable") or 0),
            number_misscheduled=int(status.get("numberMisscheduled") or 0),
            updated_number_scheduled=int(status.get("updatedNumberScheduled") or 0),
            observed_generation=int(status.get("observedGeneration") or 0),
            condition_available=available,
            condition_progressing=progressing,
            condition_replica_failure=replica_failure,
            conditions=others,
            update_strategy=str((spec.get("updateStrategy") or {}).get("type") or ""),
            metadata_generation=int(meta.get("generation") or 0),
            collision_count=status.get("collisionCount"),
        )