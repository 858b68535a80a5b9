"""The collector: wires handlers to stores and logs their entries on per-resource intervals."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from .base import InformerFactory
from .certificatesigningrequest import CertificateSigningRequestHandler
from .clusterrole import ClusterRoleHandler
from .clusterrolebinding import ClusterRoleBindingHandler
from .configmap import ConfigMapHandler
from .container import ContainerHandler
from .cronjob import CronJobHandler
from .daemonset import DaemonSetHandler
from .deployment import DeploymentHandler
from .endpoints import EndpointsHandler
from .logger import JsonLogger

log = logging.getLogger(__name__)


class CollectionError(Exception):
    """Raised when a handler fails to collect its resource."""


@dataclass
class CollectorConfig:
    """What to collect, where from, and how often (intervals in seconds)."""

    log_interval: float = 60.0
    resources: list[str] = field(default_factory=list)
    resource_configs: dict[str, float] = field(default_factory=dict)
    namespaces: list[str] = field(default_factory=list)


def default_handlers() -> dict[str, Any]:
    """Return a fresh handler for every built-in resource type, keyed by resource name."""
    return {
        "container": ContainerHandler(None),
        "deployment": DeploymentHandler(None),
        "cronjob": CronJobHandler(None),
        "configmap": ConfigMapHandler(None),
        "endpoints": EndpointsHandler(None),
        "clusterrole": ClusterRoleHandler(None),
        "clusterrolebinding": ClusterRoleBindingHandler(None),
        "certificatesigningrequest": CertificateSigningRequestHandler(None),
        "daemonset": DaemonSetHandler(None),
    }


class Collector:
    """Collects resource state from shared stores and writes it through a logger."""

    def __init__(
        self,
        config: CollectorConfig,
        factory: Optional[InformerFactory] = None,
        logger: Any = None,
        handlers: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.config = config
        self.factory = factory if factory is not None else InformerFactory()
        self.logger = logger if logger is not None else JsonLogger()
        self._handlers: dict[str, Any] = dict(
            handlers if handlers is not None else default_handlers()
        )

    def register_handler(self, name: str, handler: Any) -> None:
        """Add or replace the handler for a resource name."""
        self._handlers[name] = handler

    def setup(self) -> None:
        """Attach stores to the handlers of all configured resources."""
        for resource in self.config.resources:
            handler = self._handlers.get(resource)
            if handler is None:
                log.warning("No handler found for resource type: %s", resource)
                continue
            try:
                handler.setup_informer(self.factory, self.logger, 0)
            except Exception as exc:  # a broken handler must not stop the others
                log.error("Failed to setup informer for %s: %s", resource, exc)

    def resource_intervals(self) -> dict[str, float]:
        """Map each resource to its interval, falling back to the default log interval."""
        intervals = dict(self.config.resource_configs)
        for resource in self.config.resources:
            intervals.setdefault(resource, self.config.log_interval)
        return intervals

    def _log_entries(self, entries: list[Any], name: str) -> None:
        for entry in entries:
            try:
                self.logger.log(entry)
            except Exception as exc:
                log.error("Failed to log entry for %s: %s", name, exc)

    def collect_and_log_resource(self, name: str) -> int:
        """Collect one resource and log its entries; return how many were collected.

        Raises KeyError for an unknown resource and CollectionError if collection fails.
        """
        handler = self._handlers[name]
        try:
            entries = list(handler.collect(self.config.namespaces))
        except Exception as exc:
            raise CollectionError(f"failed to collect {name}: {exc}") from exc
        self._log_entries(entries, name)
        log.debug("Collected and logged %d entries for %s", len(entries), name)
        return len(entries)

    def collect_and_log(self) -> int:
        """Collect every configured resource once, skipping failures; return the entry count."""
        all_entries: list[Any] = []
        for resource in self.config.resources:
            handler = self._handlers.get(resource)
            if handler is None:
                log.warning("No handler found for resource type: %s", resource)
                continue
            try:
                all_entries.extend(handler.collect(self.config.namespaces))
            except Exception as exc:
                log.error("Failed to collect %s: %s", resource, exc)
        self._log_entries(all_entries, "all resources")
        log.debug("Collected and logged %d entries", len(all_entries))
        return len(all_entries)

    def _tick(self, name: str, interval: float, stop_event: threading.Event) -> None:
        while not stop_event.wait(interval):
            try:
                self.collect_and_log_resource(name)
            except CollectionError as exc:
                log.error("Collection failed for %s: %s", name, exc)

    def run(self, stop_event: threading.Event) -> None:
        """Collect each resource on its own interval until stop_event is set.

        Raises ValueError if any interval is not positive.
        """
        self.setup()
        schedule = []
        for name, interval in self.resource_intervals().items():
            if name not in self._handlers:
                log.warning("No handler found for resource type: %s", name)
                continue
            if interval <= 0:
                raise ValueError(f"non-positive interval for {name}: {interval}")
            schedule.append((name, interval))

        threads = []
        for name, interval in schedule:
            log.info("Starting ticker for %s with interval %ss", name, interval)
            thread = threading.Thread(
                target=self._tick,
                args=(name, interval, stop_event),
                name=f"collect-{name}",
                daemon=True,
            )
            thread.start()
            threads.append(thread)

        stop_event.wait()
        for thread in threads:
            thread.join()