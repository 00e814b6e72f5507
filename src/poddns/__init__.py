r"""poddns -- DNS endpoints from annotated host-network Kubernetes pods.

Reads pods and nodes into an in-memory snapshot, and derives hostname ->
address records from the ``external-dns.alpha.kubernetes.io`` annotations
(and, in ``kops-dns-controller`` mode, the kops ``dns.alpha.kubernetes.io``
ones) of every host-network pod.

Imports flow strictly downward:

```text
              services         Pod source and HTTP read-out
             /   |   \
          core   |  utils      Cache, runtime, logging, metrics / DNS helpers
             \   |   /
              models           Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Pod, Node, Endpoint and the constants they use.
    core: Snapshot cache, Kubernetes fetcher, base service, exceptions,
        logging, metrics.
    utils: Hostname annotation splitting and record-type classification.
    services: ``pod`` (periodic resolution) and ``api`` (HTTP).

Note:
    Top-level imports (``from poddns import PodSource``) are resolved lazily
    on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("poddns")

__all__ = [
    "Api",
    "ApiConfig",
    "BaseService",
    "ClusterCache",
    "ClusterConfig",
    "CompatibilityMode",
    "ConfigT",
    "Endpoint",
    "Logger",
    "Node",
    "NodeAddress",
    "Pod",
    "PodSource",
    "PodSourceConfig",
    "RecordType",
    "Snapshot",
    "resolve_endpoints",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BaseService": ("poddns.core", "BaseService"),
    "ClusterCache": ("poddns.core", "ClusterCache"),
    "ClusterConfig": ("poddns.core", "ClusterConfig"),
    "ConfigT": ("poddns.core", "ConfigT"),
    "Logger": ("poddns.core", "Logger"),
    "Snapshot": ("poddns.core", "Snapshot"),
    "CompatibilityMode": ("poddns.models", "CompatibilityMode"),
    "Endpoint": ("poddns.models", "Endpoint"),
    "Node": ("poddns.models", "Node"),
    "NodeAddress": ("poddns.models", "NodeAddress"),
    "Pod": ("poddns.models", "Pod"),
    "RecordType": ("poddns.models", "RecordType"),
    "Api": ("poddns.services", "Api"),
    "ApiConfig": ("poddns.services", "ApiConfig"),
    "PodSource": ("poddns.services", "PodSource"),
    "PodSourceConfig": ("poddns.services", "PodSourceConfig"),
    "resolve_endpoints": ("poddns.services", "resolve_endpoints"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'poddns' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
