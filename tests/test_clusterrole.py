import pytest

from kubestatelogs.base import InformerFactory
from kubestatelogs.clusterrole import ClusterRoleData, ClusterRoleHandler, PolicyRule

READ_VERBS = ["get", "list", "watch"]


def make_cluster_role(name):
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "ClusterRole",
        "metadata": {
            "name": name,
            "labels": {"app": name, "version": "v1"},
            "annotations": {"description": "test cluster role"},
            "creationTimestamp": "2024-05-01T12:00:00Z",
        },
        "rules": [
            {"apiGroups": ["apps"], "resources": ["deployments"], "verbs": READ_VERBS},
            {"apiGroups": [""], "resources": ["pods"],
             "verbs": READ_VERBS + ["create", "update", "patch", "delete"]},
            {"apiGroups": [""], "resources": ["services"], "verbs": READ_VERBS},
        ],
    }


def roles_collected(stored, namespaces=()):
    factory = InformerFactory()
    handler = ClusterRoleHandler()
    handler.setup_informer(factory, None, 3600)
    for role in stored:
        factory.store("clusterroles").add(role)
    return handler.collect(list(namespaces))


def test_setup_informer_uses_clusterrole_store():
    factory = InformerFactory()
    handler = ClusterRoleHandler()
    handler.setup_informer(factory, None, 0)
    assert handler.informer is factory.store("clusterroles")


@pytest.mark.parametrize("namespaces", [[], ["default"]])
def test_collect_all_roles_regardless_of_namespaces(namespaces):
    entries = roles_collected(
        [make_cluster_role("test-cluster-role-1"), make_cluster_role("test-cluster-role-2")], namespaces
    )
    assert all(isinstance(e, ClusterRoleData) for e in entries)
    assert {e.name for e in entries} == {"test-cluster-role-1", "test-cluster-role-2"}


def test_collect_skips_invalid_object():
    assert roles_collected([{"kind": "Pod", "metadata": {"name": "p"}}]) == []


def test_create_log_entry():
    entry = ClusterRoleHandler().create_log_entry(make_cluster_role("test-cluster-role"))
    assert entry.resource_type == "clusterrole"
    assert entry.name == "test-cluster-role"
    assert len(entry.rules) == 3
    assert entry.rules[0] == PolicyRule(
        api_groups=["apps"], resources=["deployments"], verbs=["get", "list", "watch"]
    )
    assert entry.labels["app"] == "test-cluster-role"
    assert entry.annotations["description"] == "test cluster role"


def test_policy_rule_from_dict_reads_resource_names():
    rule = PolicyRule.from_dict({"resourceNames": ["one"], "verbs": ["get"]})
    assert rule == PolicyRule(resource_names=["one"], verbs=["get"])