"""Pod source service configuration models.

See Also:
    [PodSource][poddns.services.pod.PodSource]: The service class that
        consumes this configuration.
    [BaseServiceConfig][poddns.core.base_service.BaseServiceConfig]:
        Provides ``interval``, ``max_consecutive_failures`` and ``metrics``.
"""

from __future__ import annotations

from pydantic import Field

from poddns.core.base_service import BaseServiceConfig
from poddns.services.common.configs import ResolveConfig


class PodSourceConfig(BaseServiceConfig):
    """Pod source service configuration.

    Examples:
        ```yaml
        interval: 30.0
        log_endpoints: true
        resolve:
          namespace: kube-system
          compatibility: kops-dns-controller
        ```
    """

    resolve: ResolveConfig = Field(default_factory=ResolveConfig)
    log_endpoints: bool = Field(
        default=True,
        description="Log every resolved endpoint at debug level",
    )
