"""Pod source service.

Each cycle takes the current [Snapshot][poddns.core.snapshot.Snapshot]
from the [ClusterCache][poddns.core.cache.ClusterCache], lists the pods in
the configured namespace and derives their DNS endpoints with
[endpoints_from_pods()][poddns.services.pod.resolver.endpoints_from_pods].
The last result is kept on the service for readers in the same process.

See Also:
    [PodSourceConfig][poddns.services.pod.PodSourceConfig]: Namespace,
        selector and compatibility settings.
    [BaseService][poddns.core.base_service.BaseService]: Provides
        ``run_forever()`` and the metrics helpers.

Examples:
    ```python
    from poddns.core import ClusterCache
    from poddns.services import PodSource

    cache = ClusterCache.from_yaml("config/cluster.yaml")
    source = PodSource.from_yaml("config/services/pod.yaml", cache=cache)

    async with cache, source:
        await source.run_forever()
    ```
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, ClassVar

from poddns.core.base_service import BaseService
from poddns.models import Endpoint
from poddns.models.constants import ServiceName

from .configs import PodSourceConfig
from .resolver import endpoints_from_pods


if TYPE_CHECKING:
    from poddns.core.cache import ClusterCache


class PodSource(BaseService[PodSourceConfig]):
    """Periodic endpoint resolution from host-network pods.

    A failed listing (e.g. a cache that never synced) raises out of
    [run()][poddns.services.pod.PodSource.run]; the previous result stays
    in place and ``run_forever()`` counts the failure.
    """

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.POD
    CONFIG_CLASS: ClassVar[type[PodSourceConfig]] = PodSourceConfig

    def __init__(self, cache: ClusterCache, config: PodSourceConfig | None = None) -> None:
        super().__init__(cache, config)
        self._endpoints: tuple[Endpoint, ...] = ()

    @property
    def endpoints(self) -> tuple[Endpoint, ...]:
        """Endpoints from the last successful cycle (empty before the first)."""
        return self._endpoints

    async def run(self) -> None:
        """Resolve endpoints once against the current snapshot."""
        resolve = self._config.resolve
        start = time.monotonic()

        snapshot = self._cache.snapshot()
        pods = snapshot.list_pods(resolve.namespace, resolve.label_selector)
        endpoints = endpoints_from_pods(pods, snapshot, resolve.compatibility)
        self._endpoints = tuple(endpoints)

        if self._config.log_endpoints:
            for endpoint in endpoints:
                self._logger.debug(
                    "endpoint_resolved",
                    dns_name=endpoint.dns_name,
                    record_type=endpoint.record_type,
                    targets=";".join(endpoint.targets),
                )

        skipped = sum(1 for pod in pods if not pod.host_network)
        targets = sum(len(endpoint.targets) for endpoint in endpoints)

        self.set_gauge("endpoints", len(endpoints))
        self.set_gauge("targets", targets)
        self.set_gauge("pods_listed", len(pods))
        self.set_gauge("pods_skipped", skipped)

        self._logger.info(
            "endpoints_resolved",
            namespace=resolve.namespace or "*",
            compatibility=resolve.compatibility or "standard",
            pods=len(pods),
            skipped=skipped,
            endpoints=len(endpoints),
            targets=targets,
            snapshot_age_s=round(snapshot.age, 2),
            duration_s=round(time.monotonic() - start, 4),
        )
