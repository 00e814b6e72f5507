"""API service configuration models.

See Also:
    [Api][poddns.services.api.Api]: The service class that consumes this
        configuration.
    [BaseServiceConfig][poddns.core.base_service.BaseServiceConfig]:
        Provides ``interval``, ``max_consecutive_failures`` and ``metrics``.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from poddns.core.base_service import BaseServiceConfig
from poddns.services.common.configs import ResolveConfig


class ApiConfig(BaseServiceConfig):
    """Configuration for the API service.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port for the HTTP server.
        route_prefix: URL prefix for the endpoint routes (e.g. ``/v1``).
        cors_origins: Allowed CORS origins. Empty list disables CORS.
        resolve: Namespace, selector and compatibility used per request.
    """

    host: str = Field(default="0.0.0.0", min_length=1, description="HTTP bind address")  # noqa: S104
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP port")
    route_prefix: str = Field(default="/v1", min_length=1)
    cors_origins: list[str] = Field(default_factory=list)
    resolve: ResolveConfig = Field(default_factory=ResolveConfig)

    @field_validator("route_prefix")
    @classmethod
    def _normalize_route_prefix(cls, v: str) -> str:
        v = v.strip("/")
        if not v:
            msg = "route_prefix must not be empty"
            raise ValueError(msg)
        return f"/{v}"
