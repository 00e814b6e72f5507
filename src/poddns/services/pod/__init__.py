"""Pod source service package.

Re-exports the public symbols::

    from poddns.services.pod import PodSource, PodSourceConfig, resolve_endpoints
"""

from .configs import PodSourceConfig
from .resolver import endpoints_from_pods, node_targets, resolve_endpoints
from .service import PodSource


__all__ = [
    "PodSource",
    "PodSourceConfig",
    "endpoints_from_pods",
    "node_targets",
    "resolve_endpoints",
]
