"""The poddns services.

Services are the top layer of the dependency graph, depending on
[poddns.core][poddns.core], [poddns.utils][poddns.utils] and
[poddns.models][poddns.models]. Each service extends
[BaseService][poddns.core.base_service.BaseService] and implements
``async def run()`` for one cycle of work.

Attributes:
    PodSource: Periodic endpoint resolution from annotated host-network
        pods, logged and published as metrics.
    Api: Read-only FastAPI surface resolving endpoints per request.

Note:
    Both services take a [ClusterCache][poddns.core.cache.ClusterCache]
    and resolve with the same
    [ResolveConfig][poddns.services.common.configs.ResolveConfig] rules.

Examples:
    ```python
    from poddns.core import ClusterCache
    from poddns.services import PodSource

    cache = ClusterCache.from_yaml("config/cluster.yaml")
    async with cache:
        source = PodSource(cache=cache)
        await source.run()
        print(source.endpoints)
    ```
"""

from .api import (
    Api,
    ApiConfig,
)
from .common import ResolveConfig
from .pod import (
    PodSource,
    PodSourceConfig,
    endpoints_from_pods,
    resolve_endpoints,
)


__all__ = [
    "Api",
    "ApiConfig",
    "PodSource",
    "PodSourceConfig",
    "ResolveConfig",
    "endpoints_from_pods",
    "resolve_endpoints",
]
