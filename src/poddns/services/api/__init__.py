"""API service package.

Re-exports the public symbols::

    from poddns.services.api import Api, ApiConfig
"""

from .configs import ApiConfig
from .service import Api


__all__ = [
    "Api",
    "ApiConfig",
]
