"""Core layer: cluster access, service runtime and ambient infrastructure.

Sits in the middle of the dependency graph: depends only on
``poddns.models`` and is depended upon by ``poddns.services``.

Attributes:
    Snapshot: Immutable pods-and-nodes view implementing
        [PodLister][poddns.core.snapshot.PodLister] and
        [NodeGetter][poddns.core.snapshot.NodeGetter].
    ClusterCache: Background-refreshed snapshot holder with a readiness
        barrier. See [ClusterCache][poddns.core.cache.ClusterCache].
    KubernetesFetcher: Lists pods and nodes through the Kubernetes API.
    BaseService: Generic service base class with
        [run_forever()][poddns.core.base_service.BaseService.run_forever],
        shutdown handling and metrics.
    Logger: Structured logger with key=value and JSON output.
    MetricsServer: Prometheus ``/metrics`` endpoint.
    load_yaml: Safe YAML configuration loading.

Examples:
    ```python
    from poddns.core import ClusterCache

    cache = ClusterCache.from_yaml("config/cluster.yaml")
    async with cache:
        pods = cache.snapshot().list_pods("")
    ```
"""

from .base_service import (
    BaseService,
    BaseServiceConfig,
    ConfigT,
)
from .cache import (
    CacheRetryConfig,
    ClusterCache,
    ClusterConfig,
    SnapshotFetcher,
)
from .exceptions import (
    CacheNotSyncedError,
    CacheSyncError,
    ClusterError,
    ConfigurationError,
    PodDnsError,
)
from .kubernetes import KubernetesFetcher, node_from_k8s, pod_from_k8s
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    CYCLE_DURATION_SECONDS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
    MetricsServer,
    start_metrics_server,
)
from .snapshot import NodeGetter, PodLister, Snapshot
from .yaml import load_yaml


__all__ = [
    "CYCLE_DURATION_SECONDS",
    "SERVICE_COUNTER",
    "SERVICE_GAUGE",
    "SERVICE_INFO",
    "BaseService",
    "BaseServiceConfig",
    "CacheNotSyncedError",
    "CacheRetryConfig",
    "CacheSyncError",
    "ClusterCache",
    "ClusterConfig",
    "ClusterError",
    "ConfigT",
    "ConfigurationError",
    "KubernetesFetcher",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "NodeGetter",
    "PodDnsError",
    "PodLister",
    "Snapshot",
    "SnapshotFetcher",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
    "node_from_k8s",
    "pod_from_k8s",
    "start_metrics_server",
]
