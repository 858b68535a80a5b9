"""Collection of Endpoints state."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .base import BaseHandler, LogEntryMetadata, build_metadata, should_include_namespace

RESOURCE_TYPE = "endpoints"
KIND = "Endpoints"


@dataclass
class EndpointAddressData:
    """One address behind an Endpoints object."""

    ip: str = ""
    hostname: str = ""
    node_name: str = ""
    target_ref: str = ""

    @classmethod
    def from_dict(cls, address: Mapping[str, Any]) -> "EndpointAddressData":
        target = address.get("targetRef") or {}
        return cls(
            ip=address.get("ip") or "",
            hostname=address.get("hostname") or "",
            node_name=address.get("nodeName") or "",
            target_ref=target.get("name") or "",
        )


@dataclass
class EndpointPortData:
    """One port exposed by an Endpoints object."""

    name: str = ""
    protocol: str = ""
    port: int = 0

    @classmethod
    def from_dict(cls, port: Mapping[str, Any]) -> "EndpointPortData":
        return cls(
            name=port.get("name") or "",
            protocol=str(port.get("protocol") or ""),
            port=int(port.get("port") or 0),
        )


@dataclass(kw_only=True)
class EndpointsData(LogEntryMetadata):
    """Logged state of an Endpoints object."""

    addresses: list[EndpointAddressData] = field(default_factory=list)
    ports: list[EndpointPortData] = field(default_factory=list)
    ready: Optional[bool] = None


class EndpointsHandler(BaseHandler):
    """Collects Endpoints from the cache."""

    def setup_informer(self, factory, logger, resync_period=0) -> None:
        """Attach the shared Endpoints store."""
        self.setup_base_informer(factory.store("endpoints"), logger)

    def collect(self, namespaces: Sequence[str]) -> list[EndpointsData]:
        """Return one entry per cached Endpoints object in the selected namespaces."""
        list_time = datetime.now(timezone.utc)
        entries = []
        for endpoints in self.objects(KIND):
            namespace = (endpoints.get("metadata") or {}).get("namespace") or ""
            if not should_include_namespace(namespaces, namespace):
                continue
            entry = self.create_log_entry(endpoints)
            entry.timestamp = list_time
            entries.append(entry)
        return entries

    def create_log_entry(self, endpoints: Mapping[str, Any]) -> EndpointsData:
        """Build the log entry; ready addresses and ports of all subsets are gathered."""
        subsets = endpoints.get("subsets") or []
        addresses = [
            EndpointAddressData.from_dict(address)
            for subset in subsets
            for address in subset.get("addresses") or []
        ]
        ports = [
            EndpointPortData.from_dict(port)
            for subset in subsets
            for port in subset.get("ports") or []
        ]
        return EndpointsData(
            **build_metadata(endpoints, RESOURCE_TYPE),
            addresses=addresses,
            ports=ports,
            ready=len(addresses) > 0,
        )