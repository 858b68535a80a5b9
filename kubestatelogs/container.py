"""Collection of container state, read from the pods in the cache."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from .base import BaseHandler, _parse_time, should_include_namespace

POD_KIND = "Pod"
TERMINATED_WINDOW = timedelta(hours=1)

_RESOURCE_TYPES = {False: "container", True: "init_container"}


class ContainerState(str, Enum):
    """The state a container is in."""

    RUNNING = "running"
    WAITING = "waiting"
    TERMINATED = "terminated"
    UNKNOWN = "unknown"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(kw_only=True)
class ContainerData:
    """Logged state of one container or init container."""

    resource_type: str = "container"
    timestamp: datetime
    name: str = ""
    image: str = ""
    image_id: str = ""
    pod_name: str = ""
    namespace: str = ""
    ready: Optional[bool] = None
    restart_count: int = 0
    state: ContainerState = ContainerState.UNKNOWN
    state_running: Optional[bool] = None
    state_waiting: Optional[bool] = None
    state_terminated: Optional[bool] = None
    waiting_reason: str = ""
    waiting_message: str = ""
    started_at: Optional[datetime] = None
    exit_code: int = 0
    reason: str = ""
    message: str = ""
    finished_at: Optional[datetime] = None
    started_at_term: Optional[datetime] = None
    resource_requests: Optional[dict[str, str]] = None
    resource_limits: Optional[dict[str, str]] = None
    last_terminated_reason: str = ""
    last_terminated_exit_code: int = 0
    last_terminated_timestamp: Optional[datetime] = None
    state_started: Optional[datetime] = None


def _container_key(namespace: str, pod_name: str, container_name: str, is_init: bool) -> str:
    return "/".join((namespace, pod_name, container_name, _RESOURCE_TYPES[is_init]))


def _state_of(status: Mapping[str, Any]) -> ContainerState:
    state = status.get("state") or {}
    if state.get("running") is not None:
        return ContainerState.RUNNING
    if state.get("waiting") is not None:
        return ContainerState.WAITING
    if state.get("terminated") is not None:
        return ContainerState.TERMINATED
    return ContainerState.UNKNOWN


def _resource_map(resources: Optional[Mapping[str, Any]]) -> dict[str, str]:
    return {str(name): str(quantity) for name, quantity in (resources or {}).items()}


def _meta(pod: Mapping[str, Any]) -> tuple[str, str]:
    meta = pod.get("metadata") or {}
    return meta.get("namespace") or "", meta.get("name") or ""


class ContainerHandler(BaseHandler):
    """Collects running containers and containers that have just terminated."""

    def __init__(self, client: Any = None) -> None:
        super().__init__(client)
        self._state_lock = threading.Lock()
        self._state_cache: dict[str, ContainerState] = {}

    def setup_informer(self, factory, logger, resync_period=0) -> None:
        """Attach the shared pod store; containers are read through their pods."""
        self.setup_base_informer(factory.store("pods"), logger)

    def collect(self, namespaces: Sequence[str]) -> list[ContainerData]:
        """Return container entries for the cached pods in the selected namespaces."""
        return self.process_pods(list(self.objects(POD_KIND)), namespaces)

    def process_pods(
        self, pods: Iterable[Any], namespaces: Sequence[str]
    ) -> list[ContainerData]:
        """Build entries for running and newly terminated containers and update the state cache."""
        entries: list[ContainerData] = []
        current: dict[str, ContainerState] = {}
        list_time = _utc_now()

        for pod in pods:
            if not isinstance(pod, Mapping) or pod.get("kind") != POD_KIND:
                continue
            namespace, pod_name = _meta(pod)
            if not should_include_namespace(namespaces, namespace):
                continue
            status = pod.get("status") or {}
            for key, is_init in (("containerStatuses", False), ("initContainerStatuses", True)):
                for container in status.get(key) or []:
                    container_key = _container_key(
                        namespace, pod_name, container.get("name") or "", is_init
                    )
                    state = _state_of(container)
                    current[container_key] = state
                    if state is ContainerState.RUNNING or self._is_newly_terminated(
                        container_key, state, container
                    ):
                        entry = self.create_log_entry(pod, container, is_init)
                        entry.timestamp = list_time
                        entries.append(entry)

        with self._state_lock:
            self._state_cache = current
        return entries

    def _is_newly_terminated(
        self, key: str, state: ContainerState, container: Mapping[str, Any]
    ) -> bool:
        if state is not ContainerState.TERMINATED:
            return False
        terminated = (container.get("state") or {}).get("terminated")
        if terminated is not None:
            finished = _parse_time(terminated.get("finishedAt"))
            if finished is None or finished < _utc_now() - TERMINATED_WINDOW:
                return False
        with self._state_lock:
            previous = self._state_cache.get(key)
        if previous is None:
            return True
        return previous is ContainerState.RUNNING

    def create_log_entry(
        self,
        pod: Mapping[str, Any],
        container: Optional[Mapping[str, Any]],
        is_init_container: bool,
    ) -> ContainerData:
        """Build the log entry for one container status of a pod."""
        namespace, pod_name = _meta(pod)
        resource_type = _RESOURCE_TYPES[bool(is_init_container)]
        if container is None:
            return ContainerData(
                resource_type=resource_type,
                timestamp=_utc_now(),
                pod_name=pod_name,
                namespace=namespace,
                state=ContainerState.UNKNOWN,
            )

        name = container.get("name") or ""
        state_info = container.get("state") or {}
        state = _state_of(container)
        fields: dict[str, Any] = {}

        if state is ContainerState.RUNNING:
            started = _parse_time(state_info["running"].get("startedAt"))
            fields.update(state_running=True, started_at=started, state_started=started)
        elif state is ContainerState.WAITING:
            waiting = state_info["waiting"]
            fields.update(
                state_waiting=True,
                waiting_reason=waiting.get("reason") or "",
                waiting_message=waiting.get("message") or "",
            )
        elif state is ContainerState.TERMINATED:
            terminated = state_info["terminated"]
            fields.update(
                state_terminated=True,
                exit_code=int(terminated.get("exitCode") or 0),
                reason=terminated.get("reason") or "",
                message=terminated.get("message") or "",
                finished_at=_parse_time(terminated.get("finishedAt")),
                started_at_term=_parse_time(terminated.get("startedAt")),
            )

        last = (container.get("lastState") or {}).get("terminated")
        if last is not None:
            fields.update(
                last_terminated_reason=last.get("reason") or "",
                last_terminated_exit_code=int(last.get("exitCode") or 0),
                last_terminated_timestamp=_parse_time(last.get("finishedAt")),
            )

        spec_key = "initContainers" if is_init_container else "containers"
        spec = next(
            (c for c in (pod.get("spec") or {}).get(spec_key) or [] if c.get("name") == name),
            None,
        )
        if spec is not None:
            resources = spec.get("resources") or {}
            fields.update(
                resource_requests=_resource_map(resources.get("requests")),
                resource_limits=_resource_map(resources.get("limits")),
            )

        return ContainerData(
            resource_type=resource_type,
            timestamp=_utc_now(),
            name=name,
            image=container.get("image") or "",
            image_id=container.get("imageID") or "",
            pod_name=pod_name,
            namespace=namespace,
            ready=bool(container.get("ready", False)),
            restart_count=int(container.get("restartCount") or 0),
            state=state,
            **fields,
        )