"""Collection of ConfigMap state."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from .base import BaseHandler, LogEntryMetadata, build_metadata, should_include_namespace


@dataclass(kw_only=True)
class ConfigMapData(LogEntryMetadata):
    """Logged state of a ConfigMap."""

    data_keys: list[str] = field(default_factory=list)


class ConfigMapHandler(BaseHandler):
    """Collects ConfigMaps from the cache."""

    def setup_informer(self, factory, logger, resync_period=0):
        """Attach the shared ConfigMap store."""
        self.setup_base_informer(factory.store("configmaps"), logger)

    def collect(self, namespaces):
        """Return one entry per cached ConfigMap in the selected namespaces."""
        list_time = datetime.now(timezone.utc)
        return [
            replace(self.create_log_entry(configmap), timestamp=list_time)
            for configmap in self.objects("ConfigMap")
            if should_include_namespace(
                namespaces, (configmap.get("metadata") or {}).get("namespace") or ""
            )
        ]

    def create_log_entry(self, configmap):
        """Build the log entry for one ConfigMap; only key names are recorded."""
        keys = [*(configmap.get("data") or {}), *(configmap.get("binaryData") or {})]
        return ConfigMapData(**build_metadata(configmap, "configmap"), data_keys=keys)