from datetime import datetime, timedelta, timezone

import pytest

from kubestatelogs.base import InformerFactory
from kubestatelogs.container import ContainerHandler, ContainerState


class _ListLogger:
    def __init__(self):
        self.entries = []

    def log(self, entry):
        self.entries.append(entry)


def _now():
    return datetime.now(timezone.utc)


def make_container(name, image):
    return {
        "name": name,
        "image": image,
        "resources": {
            "requests": {"cpu": "100m", "memory": "128Mi"},
            "limits": {"cpu": "200m", "memory": "256Mi"},
        },
    }


def running_status(name, image, image_id="docker://sha256:test"):
    return {
        "name": name,
        "image": image,
        "imageID": image_id,
        "ready": True,
        "restartCount": 0,
        "state": {"running": {"startedAt": _now()}},
    }


def make_pod(name, namespace, containers):
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": {"app": name, "version": "v1"},
            "annotations": {"description": "test pod"},
            "creationTimestamp": _now(),
        },
        "spec": {"containers": containers},
        "status": {
            "containerStatuses": [running_status(c["name"], c["image"]) for c in containers]
        },
    }


def make_init_pod():
    return {
        "kind": "Pod",
        "metadata": {"name": "test-pod", "namespace": "default"},
        "spec": {
            "initContainers": [make_container("init", "busybox:latest")],
            "containers": [make_container("app", "nginx:latest")],
        },
        "status": {
            "initContainerStatuses": [
                running_status("init", "busybox:latest", "docker://sha256:init")
            ],
            "containerStatuses": [running_status("app", "nginx:latest", "docker://sha256:app")],
        },
    }


def terminated(exit_code, reason, finished_at):
    return {"terminated": {"exitCode": exit_code, "reason": reason, "finishedAt": finished_at}}


def setup_handler(*pods):
    handler = ContainerHandler()
    factory = InformerFactory()
    handler.setup_informer(factory, _ListLogger(), 3600)
    for pod in pods:
        factory.store("pods").add(pod)
    return handler, factory


def test_setup_informer_uses_pod_store():
    handler, factory = setup_handler()
    assert handler.informer is factory.store("pods")


def test_collect_and_namespace_filter():
    pod1 = make_pod("test-pod-1", "default", [make_container("app", "nginx:latest")])
    pod2 = make_pod("test-pod-2", "kube-system", [make_container("sidecar", "busybox:latest")])
    handler, _ = setup_handler(pod1, pod2)

    assert len(handler.collect([])) == 2

    entries = handler.collect(["default"])
    assert len(entries) == 1
    assert entries[0].pod_name == "test-pod-1"
    assert entries[0].namespace == "default"


def test_collect_empty_cache():
    handler, _ = setup_handler()
    assert handler.collect([]) == []


def test_create_log_entry_running():
    handler = ContainerHandler()
    pod = make_pod("test-pod", "default", [make_container("app", "nginx:latest")])
    entry = handler.create_log_entry(pod, pod["status"]["containerStatuses"][0], False)

    assert entry.name == "app"
    assert entry.image == "nginx:latest"
    assert entry.image_id == "docker://sha256:test"
    assert entry.pod_name == "test-pod"
    assert entry.ready is True
    assert entry.restart_count == 0
    assert entry.state == "running"
    assert entry.state_running is True
    assert not entry.state_waiting
    assert not entry.state_terminated
    assert entry.started_at is not None and entry.state_started == entry.started_at
    assert entry.resource_requests == {"cpu": "100m", "memory": "128Mi"}
    assert entry.resource_limits == {"cpu": "200m", "memory": "256Mi"}
    assert entry.resource_type == "container"


def test_create_log_entry_waiting():
    handler = ContainerHandler()
    pod = make_pod("test-pod", "default", [make_container("app", "nginx:latest")])
    status = pod["status"]["containerStatuses"][0]
    status["state"] = {
        "waiting": {"reason": "ImagePullBackOff", "message": "Back-off pulling image"}
    }
    status["ready"] = False

    entry = handler.create_log_entry(pod, status, False)

    assert entry.state is ContainerState.WAITING
    assert entry.state_waiting is True
    assert entry.waiting_reason == "ImagePullBackOff"
    assert entry.waiting_message == "Back-off pulling image"
    assert entry.ready is False


def test_create_log_entry_last_terminated_state():
    handler = ContainerHandler()
    pod = make_pod("test-pod", "default", [make_container("app", "nginx:latest")])
    status = pod["status"]["containerStatuses"][0]
    status["lastState"] = {
        "terminated": {"exitCode": 137, "reason": "OOMKilled", "finishedAt": "2024-01-01T00:00:00Z"}
    }
    entry = handler.create_log_entry(pod, status, False)
    assert entry.last_terminated_reason == "OOMKilled"
    assert entry.last_terminated_exit_code == 137
    assert entry.last_terminated_timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_init_container_resources():
    pod = make_init_pod()
    handler = ContainerHandler()

    init_entry = handler.create_log_entry(pod, pod["status"]["initContainerStatuses"][0], True)
    assert init_entry.name == "init"
    assert init_entry.resource_type == "init_container"
    assert len(init_entry.resource_requests) > 0
    assert len(init_entry.resource_limits) > 0

    regular = handler.create_log_entry(pod, pod["status"]["containerStatuses"][0], False)
    assert regular.name == "app"
    assert len(regular.resource_requests) > 0
    assert len(regular.resource_limits) > 0


def test_exit_detection():
    pod = make_pod("test-pod", "default", [make_container("app", "nginx:latest")])
    handler = ContainerHandler()

    entries = handler.process_pods([pod], [])
    assert len(entries) == 1
    assert entries[0].state == "running"

    pod["status"]["containerStatuses"][0]["state"] = terminated(0, "Completed", _now())
    entries = handler.process_pods([pod], [])
    assert len(entries) == 1
    assert entries[0].state == "terminated"
    assert entries[0].exit_code == 0
    assert entries[0].reason == "Completed"


def test_first_time_terminated_container():
    pod = make_pod("test-pod", "default", [make_container("app", "nginx:latest")])
    pod["status"]["containerStatuses"][0]["state"] = terminated(1, "Error", _now())
    handler = ContainerHandler()

    entries = handler.process_pods([pod], [])
    assert len(entries) == 1
    assert entries[0].state == "terminated"
    assert entries[0].exit_code == 1
    assert entries[0].reason == "Error"


def test_no_duplicate_exit_logs():
    pod = make_pod("test-pod", "default", [make_container("app", "nginx:latest")])
    pod["status"]["containerStatuses"][0]["state"] = terminated(1, "Error", _now())
    handler = ContainerHandler()

    assert len(handler.process_pods([pod], [])) == 1
    assert handler.process_pods([pod], []) == []


def test_init_container_exit_detection():
    pod = make_init_pod()
    handler = ContainerHandler()

    assert len(handler.process_pods([pod], [])) == 2

    pod["status"]["initContainerStatuses"][0]["state"] = terminated(0, "Completed", _now())
    entries = handler.process_pods([pod], [])
    assert len(entries) == 2

    found = [e for e in entries if e.resource_type == "init_container" and e.state == "terminated"]
    assert len(found) == 1
    assert found[0].name == "init"


def test_create_log_entry_nil_container():
    pod = {
        "kind": "Pod",
        "metadata": {"name": "test-pod", "namespace": "default"},
        "spec": {"containers": [{"name": "app", "image": "nginx:latest"}]},
    }
    handler = ContainerHandler()

    data = handler.create_log_entry(pod, None, False)
    assert data.resource_type == "container"
    assert isinstance(data.timestamp, datetime)
    assert data.pod_name == "test-pod"
    assert data.namespace == "default"
    assert data.state == "unknown"

    assert handler.create_log_entry(pod, None, True).resource_type == "init_container"


def test_terminated_container_time_filtering():
    old = make_pod("test-pod-old", "default", [make_container("app", "nginx:latest")])
    old["status"]["containerStatuses"][0]["state"] = terminated(
        1, "Error", _now() - timedelta(hours=2)
    )
    recent = make_pod("test-pod-recent", "default", [make_container("app", "nginx:latest")])
    recent["status"]["containerStatuses"][0]["state"] = terminated(
        1, "Error", _now() - timedelta(minutes=30)
    )
    handler = ContainerHandler()

    entries = handler.process_pods([old, recent], [])
    assert len(entries) == 1
    assert entries[0].state == "terminated"
    assert entries[0].exit_code == 1
    assert entries[0].reason == "Error"
    assert entries[0].pod_name == "test-pod-recent"


def test_terminated_without_finish_time_is_skipped():
    pod = make_pod("test-pod", "default", [make_container("app", "nginx:latest")])
    pod["status"]["containerStatuses"][0]["state"] = {"terminated": {"exitCode": 2}}
    handler = ContainerHandler()
    assert handler.process_pods([pod], []) == []


def test_non_pod_objects_are_skipped():
    handler = ContainerHandler()
    assert handler.process_pods([{"kind": "Service", "metadata": {"name": "x"}}, "junk"], []) == []


@pytest.mark.parametrize(
    "state, expected",
    [
        ({"running": {}}, ContainerState.RUNNING),
        ({"waiting": {"reason": "x"}}, ContainerState.WAITING),
        ({"terminated": {"exitCode": 0}}, ContainerState.TERMINATED),
        ({}, ContainerState.UNKNOWN),
    ],
)
def test_state_detection(state, expected):
    pod = {"kind": "Pod", "metadata": {"name": "p", "namespace": "ns"}}
    entry = ContainerHandler().create_log_entry(pod, {"name": "c", "state": state}, False)
    assert entry.state is expected