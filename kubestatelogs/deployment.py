"""Collection of Deployment state."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from .base import BaseHandler, LogEntryMetadata, build_metadata, should_include_namespace
from .daemonset import _split_conditions

RESOURCE_TYPE = "deployment"
KIND = "Deployment"
DEFAULT_REVISION_HISTORY_LIMIT = 10
DEFAULT_PROGRESS_DEADLINE_SECONDS = 600

_PERCENT = re.compile(r"([+-]?\d+)%")


def scaled_value(value: Union[int, str], total: int, round_up: bool) -> int:
    """Resolve an int-or-percent value against total; raises ValueError for bad strings."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"invalid value for int or percent: {value!r}")
    if isinstance(value, int):
        return value
    match = _PERCENT.fullmatch(value)
    if match is None:
        raise ValueError(f"invalid value for int or percent: {value!r}")
    product = int(match.group(1)) * total
    return -(-product // 100) if round_up else product // 100


@dataclass(kw_only=True)
class DeploymentData(LogEntryMetadata):
    """Logged state of a Deployment."""

    desired_replicas: int = 0
    current_replicas: int = 0
    ready_replicas: int = 0
    available_replicas: int = 0
    unavailable_replicas: int = 0
    updated_replicas: int = 0
    observed_generation: int = 0
    collision_count: int = 0
    strategy_type: str = ""
    strategy_rolling_update_max_surge: int = 0
    strategy_rolling_update_max_unavailable: int = 0
    condition_available: Optional[bool] = None
    condition_progressing: Optional[bool] = None
    condition_replica_failure: Optional[bool] = None
    conditions: dict[str, Optional[bool]] = field(default_factory=dict)
    paused: bool = False
    min_ready_seconds: int = 0
    revision_history_limit: int = DEFAULT_REVISION_HISTORY_LIMIT
    progress_deadline_seconds: int = DEFAULT_PROGRESS_DEADLINE_SECONDS
    metadata_generation: int = 0


def _scaled_or_zero(value: Any, total: int, round_up: bool) -> int:
    if value is None:
        return 0
    try:
        return scaled_value(value, total, round_up)
    except ValueError:
        return 0


class DeploymentHandler(BaseHandler):
    """Collects Deployments from the cache."""

    def setup_informer(self, factory, logger, resync_period=0) -> None:
        """Attach the shared Deployment store."""
        self.setup_base_informer(factory.store("deployments"), logger)

    def collect(self, namespaces: Sequence[str]) -> list[DeploymentData]:
        """Return one entry per cached Deployment in the selected namespaces."""
        list_time = datetime.now(timezone.utc)
        entries = []
        for deployment in self.objects(KIND):
            namespace = (deployment.get("metadata") or {}).get("namespace") or ""
            if not should_include_namespace(namespaces, namespace):
                continue
            entry = self.create_log_entry(deployment)
            entry.timestamp = list_time
            entries.append(entry)
        return entries

    def create_log_entry(self, deployment: Mapping[str, Any]) -> DeploymentData:
        """Build the log entry; unset replicas count as 1 and rolling-update percents are resolved."""
        spec = deployment.get("spec") or {}
        status = deployment.get("status") or {}
        meta = deployment.get("metadata") or {}

        replicas = spec.get("replicas")
        desired = 1 if replicas is None else int(replicas)

        strategy = spec.get("strategy") or {}
        rolling = strategy.get("rollingUpdate") or {}
        max_surge = _scaled_or_zero(rolling.get("maxSurge"), desired, True)
        max_unavailable = _scaled_or_zero(rolling.get("maxUnavailable"), desired, False)

        available, progressing, replica_failure, others = _split_conditions(
            status.get("conditions") or []
        )

        revision_limit = spec.get("revisionHistoryLimit")
        deadline = spec.get("progressDeadlineSeconds")
        collisions = status.get("collisionCount")

        return DeploymentData(
            **build_metadata(deployment, RESOURCE_TYPE),
            desired_replicas=desired,
            current_replicas=int(status.get("replicas") or 0),
            ready_replicas=int(status.get("readyReplicas") or 0),
            available_replicas=int(status.get("availableReplicas") or 0),
            unavailable_replicas=int(status.get("unavailableReplicas") or 0),
            updated_replicas=int(status.get("updatedReplicas") or 0),
            observed_generation=int(status.get("observedGeneration") or 0),
            collision_count=0 if collisions is None else int(collisions),
            strategy_type=str(strategy.get("type") or ""),
            strategy_rolling_update_max_surge=max_surge,
            strategy_rolling_update_max_unavailable=max_unavailable,
            condition_available=available,
            condition_progressing=progressing,
            condition_replica_failure=replica_failure,
            conditions=others,
            paused=bool(spec.get("paused", False)),
            min_ready_seconds=int(spec.get("minReadySeconds") or 0),
            revision_history_limit=(
                DEFAULT_REVISION_HISTORY_LIMIT if revision_limit is None else int(revision_limit)
            ),
            progress_deadline_seconds=(
                DEFAULT_PROGRESS_DEADLINE_SECONDS if deadline is None else int(deadline)
            ),
            metadata_generation=int(meta.get("generation") or 0),
        )