"""Shared building blocks for the poddns services.

Attributes:
    configs: [ResolveConfig][poddns.services.common.configs.ResolveConfig],
        the namespace / selector / compatibility settings embedded by every
        service that resolves endpoints.
"""

from .configs import ResolveConfig


__all__ = [
    "ResolveConfig",
]
