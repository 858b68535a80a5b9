"""Collection of ClusterRole state."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from .base import BaseHandler, LogEntryMetadata, build_metadata


@dataclass
class PolicyRule:
    """One RBAC policy rule."""

    api_groups: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    resource_names: list[str] = field(default_factory=list)
    verbs: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, rule):
        """Build a rule from its API form."""
        return cls(
            api_groups=list(rule.get("apiGroups") or []),
            resources=list(rule.get("resources") or []),
            resource_names=list(rule.get("resourceNames") or []),
            verbs=list(rule.get("verbs") or []),
        )


@dataclass(kw_only=True)
class ClusterRoleData(LogEntryMetadata):
    """Logged state of a ClusterRole."""

    rules: list[PolicyRule] = field(default_factory=list)


class ClusterRoleHandler(BaseHandler):
    """Collects ClusterRoles from the cache."""

    def setup_informer(self, factory, logger, resync_period=0):
        """Attach the shared ClusterRole store."""
        self.setup_base_informer(factory.store("clusterroles"), logger)

    def collect(self, namespaces):
        """Return one entry per cached ClusterRole; they are cluster scoped."""
        list_time = datetime.now(timezone.utc)
        return [
            replace(self.create_log_entry(role), timestamp=list_time)
            for role in self.objects("ClusterRole")
        ]

    def create_log_entry(self, role):
        """Build the log entry for one ClusterRole."""
        rules = [PolicyRule.from_dict(rule) for rule in role.get("rules") or []]
        return ClusterRoleData(**build_metadata(role, "clusterrole"), rules=rules)