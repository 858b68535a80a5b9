# kubestatelogs

`kubestatelogs` turns the state of Kubernetes objects into structured
log records. Each resource type is collected on its own interval. On
every tick the handler takes a snapshot of the cached objects, builds one
entry per object, and the logger writes each entry as one line of JSON
(to standard output by default).

Objects are plain dictionaries in their API form, with camelCase keys such
as `metadata`, `spec` and `status`. Each object must carry its `kind`,
because handlers only pick up objects of their own kind. Custom resources
are matched by `apiVersion` instead.

## What it does not do

- It has no connection to a cluster. It does not list or watch the
  Kubernetes API. You fill the object stores yourself, for example from a
  watch loop built on a client library, or from fixtures in tests.
- It has no command-line program. You start collection from Python with
  `Collector.run`.
- Handlers exist only for the resource types listed below. Pods, services,
  nodes, jobs, secrets and other types have no handler of their own. Pods
  are read only to report their containers.

## Modules

### `kubestatelogs.base`

- `ObjectStore` is a thread-safe cache of objects keyed by namespace and
  name. It has `add`, `delete`, `list` and `len()`.
- `InformerFactory.store(resource)` returns the one shared `ObjectStore`
  for a resource name such as `"configmaps"`. It creates the store on
  first use.
- `BaseHandler` holds the attached store and logger
  (`setup_base_informer`). It also yields the cached objects of one kind
  (`objects(kind)`).
- `LogEntryMetadata` holds the fields every entry shares:
  - `timestamp` and `resource_type`
  - `name` and `namespace`
  - `created_timestamp`, in Unix seconds
  - `labels` and `annotations`
  - `created_by_kind` and `created_by_name`
- `should_include_namespace(namespaces, namespace)` checks the namespace
  filter. An empty filter lets every namespace through.
- `owner_reference_info(obj)` returns the kind and name of the first owner
  reference. If there is none, both are empty strings.
- `build_metadata(obj, resource_type)` returns the common metadata as
  keyword arguments for a `LogEntryMetadata` subclass.

### `kubestatelogs.logger`

- `JsonLogger(stream=None)` writes each entry as one line of compact JSON.
  - It writes to standard output unless you give it a stream.
  - `<`, `>`, `&`, U+2028 and U+2029 are escaped in the output.
- `to_json_value(value)` turns values into plain JSON values:
  - Dataclasses and enums are converted.
  - Datetimes become ISO 8601 strings, with `Z` for UTC.
  - Mappings get their keys sorted.
  - Bytes are written as base64.
  - Lists, tuples and sets become lists.

### Resource handlers

Each handler has three methods:

- `setup_informer(factory, logger, resync_period)` attaches the shared
  store for its resource.
- `collect(namespaces)` returns entries for the cached objects. All
  entries from one call share one timestamp. Cluster-scoped resources
  ignore the namespace filter.
- `create_log_entry(...)` builds the entry for a single object.

The handlers are:

| Handler | Store | Records |
| --- | --- | --- |
| `configmap.ConfigMapHandler` | `configmaps` | the key names of `data` and `binaryData`, never the values |
| `clusterrole.ClusterRoleHandler` | `clusterroles` | the policy rules as `PolicyRule` |
| `clusterrolebinding.ClusterRoleBindingHandler` | `clusterrolebindings` | the `RoleRef` and the `Subject` list |
| `certificatesigningrequest.CertificateSigningRequestHandler` | `certificatesigningrequests` | the signer, the usages, the expiration seconds, and the status taken from the first condition's type |
| `container.ContainerHandler` | `pods` | one `ContainerData` per container or init container |
| `cronjob.CronJobHandler` | `cronjobs` | the schedule, the concurrency policy, suspend, the history limits, the last schedule time, the active job count and whether any job is active |
| `daemonset.DaemonSetHandler` | `daemonsets` | the scheduling counts, the observed generation, the update strategy, the collision count and the conditions |
| `deployment.DeploymentHandler` | `deployments` | the replica counts, the strategy, the conditions and the spec fields |
| `endpoints.EndpointsHandler` | `endpoints` | the ready addresses and ports of all subsets, and `ready` (true when there is at least one address) |

More on some of them:

- **Containers.** `ContainerHandler` logs running containers on every
  pass. It logs a terminated container only in two cases:
  - when it was running on the previous pass;
  - when it has not been seen before.

  In both cases the container must have a finish time within the last
  hour. Its states are kept between passes. The work is done in
  `process_pods`, and states are one of the `ContainerState` values.
- **Conditions.** `Available`, `Progressing` and `ReplicaFailure` are
  pulled out into their own fields. All other conditions go into a map.
  `daemonset.condition_status` maps `"True"` to True and `"False"` to
  False. Anything else becomes None.
- **Deployment defaults.** If the spec leaves a value unset, the entry
  uses 1 desired replica, a revision history limit of 10 and a progress
  deadline of 600 seconds.
- **Rolling update.** `maxSurge` and `maxUnavailable` are resolved against
  the desired replicas by `deployment.scaled_value(value, total, round_up)`:
  - Surge rounds up and unavailable rounds down.
  - Invalid values count as 0.
- **Custom resources.** `crd.CRDHandler(client, (group, version,
  resource), resource_name, custom_fields)` collects one custom resource.
  - Its store is named `"<resource>.<group>"`.
  - Only objects whose `apiVersion` matches are picked up.
  - Each entry records the spec and the status.
  - Each entry also records the values found at the dotted paths in
    `custom_fields`. It reads them with `crd.extract_field(obj, path)`,
    which returns None for a missing path. Missing fields are left out.

### `kubestatelogs.collector`

- `CollectorConfig` holds:
  - `log_interval`: the default interval, in seconds;
  - `resources`;
  - `resource_configs`: a mapping of resource name to interval;
  - `namespaces`.
- `default_handlers()` returns one handler for each built-in resource
  name: `container`, `deployment`, `cronjob`, `configmap`, `endpoints`,
  `clusterrole`, `clusterrolebinding`, `certificatesigningrequest` and
  `daemonset`.
- `Collector(config, factory=None, logger=None, handlers=None)` ties
  handlers, stores and the logger together.
  - `register_handler(name, handler)` adds a handler, for example a
    `CRDHandler`.
  - `setup()` attaches stores for the configured resources. It warns about
    names that have no handler.
  - `resource_intervals()` gives each resource its interval. A resource
    without its own interval uses `log_interval`.
  - `collect_and_log_resource(name)` collects and logs one resource and
    returns the number of entries. It raises `KeyError` for an unknown
    name and `CollectionError` when collection fails.
  - `collect_and_log()` collects every configured resource once. It
    skips failures and returns the total number of entries.
  - `run(stop_event)` runs one ticker thread per resource until the
    `threading.Event` is set. It raises `ValueError` for an interval that
    is not positive.

## Example

```python
from kubestatelogs.base import InformerFactory
from kubestatelogs.configmap import ConfigMapHandler
from kubestatelogs.logger import JsonLogger

factory = InformerFactory()
logger = JsonLogger()

handler = ConfigMapHandler()
handler.setup_informer(factory, logger, 0)

factory.store("configmaps").add({
    "kind": "ConfigMap",
    "metadata": {"name": "app-config", "namespace": "default"},
    "data": {"config.yaml": "..."},
})

for entry in handler.collect(["default"]):
    logger.log(entry)
```

Running every built-in handler on its own interval:

```python
import threading

from kubestatelogs.collector import Collector, CollectorConfig

config = CollectorConfig(
    log_interval=60,
    resources=["deployment", "configmap"],
    resource_configs={"deployment": 300},
)
collector = Collector(config)
# collector.factory.store("deployments").add(...) as objects arrive
stop = threading.Event()
collector.run(stop)  # returns after stop.set() is called from another thread
```