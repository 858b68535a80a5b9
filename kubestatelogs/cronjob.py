"""Collection of CronJob state."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from .base import (
    BaseHandler,
    LogEntryMetadata,
    _parse_time,
    build_metadata,
    should_include_namespace,
)

RESOURCE_TYPE = "cronjob"
KIND = "CronJob"


@dataclass(kw_only=True)
class CronJobData(LogEntryMetadata):
    """Logged state of a CronJob."""

    schedule: str = ""
    concurrency_policy: str = ""
    suspend: Optional[bool] = None
    successful_jobs_history_limit: Optional[int] = None
    failed_jobs_history_limit: Optional[int] = None
    active_jobs_count: int = 0
    last_schedule_time: Optional[datetime] = None
    next_schedule_time: Optional[datetime] = None
    condition_active: Optional[bool] = None


class CronJobHandler(BaseHandler):
    """Collects CronJobs from the cache."""

    def setup_informer(self, factory, logger, resync_period=0) -> None:
        """Attach the shared CronJob store."""
        self.setup_base_informer(factory.store("cronjobs"), logger)

    def collect(self, namespaces: Sequence[str]) -> list[CronJobData]:
        """Return one entry per cached CronJob in the selected namespaces."""
        list_time = datetime.now(timezone.utc)
        entries = []
        for cronjob in self.objects(KIND):
            namespace = (cronjob.get("metadata") or {}).get("namespace") or ""
            if not should_include_namespace(namespaces, namespace):
                continue
            entry = self.create_log_entry(cronjob)
            entry.timestamp = list_time
            entries.append(entry)
        return entries

    def create_log_entry(self, cronjob: Mapping[str, Any]) -> CronJobData:
        """Build the log entry for one CronJob."""
        spec = cronjob.get("spec") or {}
        status = cronjob.get("status") or {}
        active = status.get("active") or []
        return CronJobData(
            **build_metadata(cronjob, RESOURCE_TYPE),
            schedule=spec.get("schedule") or "",
            concurrency_policy=str(spec.get("concurrencyPolicy") or ""),
            suspend=spec.get("suspend"),
            successful_jobs_history_limit=spec.get("successfulJobsHistoryLimit"),
            failed_jobs_history_limit=spec.get("failedJobsHistoryLimit"),
            active_jobs_count=len(active),
            last_schedule_time=_parse_time(status.get("lastScheduleTime")),
            next_schedule_time=None,
            condition_active=len(active) > 0,
        )