"""Collection of ClusterRoleBinding state."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from .base import BaseHandler, LogEntryMetadata, build_metadata


@dataclass
class RoleRef:
    """The role a binding grants."""

    api_group: str = ""
    kind: str = ""
    name: str = ""


@dataclass
class Subject:
    """An identity a binding applies to."""

    kind: str = ""
    name: str = ""
    namespace: str = ""
    api_group: str = ""


@dataclass(kw_only=True)
class ClusterRoleBindingData(LogEntryMetadata):
    """Logged state of a ClusterRoleBinding."""

    role_ref: RoleRef = field(default_factory=RoleRef)
    subjects: list[Subject] = field(default_factory=list)


class ClusterRoleBindingHandler(BaseHandler):
    """Collects ClusterRoleBindings from the cache."""

    def setup_informer(self, factory, logger, resync_period=0):
        """Attach the shared ClusterRoleBinding store."""
        self.setup_base_informer(factory.store("clusterrolebindings"), logger)

    def collect(self, namespaces):
        """Return one entry per cached ClusterRoleBinding; they are cluster scoped."""
        list_time = datetime.now(timezone.utc)
        return [
            replace(self.create_log_entry(binding), timestamp=list_time)
            for binding in self.objects("ClusterRoleBinding")
        ]

    def create_log_entry(self, binding):
        """Build the log entry for one ClusterRoleBinding."""
        ref = binding.get("roleRef") or {}
        role_ref = RoleRef(
            api_group=ref.get("apiGroup") or "",
            kind=ref.get("kind") or "",
            name=ref.get("name") or "",
        )
        subjects = [
            Subject(
                kind=s.get("kind") or "",
                name=s.get("name") or "",
                namespace=s.get("namespace") or "",
                api_group=s.get("apiGroup") or "",
            )
            for s in binding.get("subjects") or []
        ]
        return ClusterRoleBindingData(
            **build_metadata(binding, "clusterrolebinding"), role_ref=role_ref, subjects=subjects
        )