"""Read-only HTTP surface over the resolved endpoints, via FastAPI.

Every request resolves against the cache's current snapshot, so answers
are as fresh as the last cache refresh and never wait on the Kubernetes
API. The HTTP server runs as a background ``asyncio.Task`` alongside the
standard ``run_forever()`` cycle; each ``run()`` cycle logs request
statistics and updates Prometheus metrics.

Routes (``{prefix}`` is ``ApiConfig.route_prefix``):

* ``GET /health``: liveness plus cache readiness.
* ``GET {prefix}/endpoints``: all endpoints, optionally filtered by
  ``record_type`` and ``dns_name`` query parameters.
* ``GET {prefix}/endpoints/{dns_name}``: the endpoints (one per record
  type) for a single name; 404 when there is none.

Cluster errors (including a cache that has not synced) answer 503.

See Also:
    [resolve_endpoints()][poddns.services.pod.resolver.resolve_endpoints]:
        The resolver called per request.
    [BaseService][poddns.core.base_service.BaseService]: Lifecycle and
        metrics.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from poddns.core.base_service import BaseService
from poddns.core.exceptions import ClusterError
from poddns.models import Endpoint, RecordType, canonical_dns_name
from poddns.models.constants import ServiceName
from poddns.services.pod.resolver import resolve_endpoints

from .configs import ApiConfig


if TYPE_CHECKING:
    from types import TracebackType

    from poddns.core.cache import ClusterCache

_HTTP_ERROR_THRESHOLD = 400


@dataclass(slots=True)
class RequestStats:
    """Request counters accumulated between two ``run()`` cycles."""

    total: int = 0
    failed: int = 0

    def record(self, status_code: int) -> bool:
        """Count one response; return True when it is an error response."""
        self.total += 1
        is_error = status_code >= _HTTP_ERROR_THRESHOLD
        if is_error:
            self.failed += 1
        return is_error

    def drain(self) -> tuple[int, int]:
        """Return ``(total, failed)`` and reset both counters."""
        counts = (self.total, self.failed)
        self.total = self.failed = 0
        return counts


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


class Api(BaseService[ApiConfig]):
    """REST API service exposing resolved endpoints read-only.

    ``async with api`` starts uvicorn in a background task serving the app
    from [_build_app()][poddns.services.api.Api._build_app]; leaving the
    block cancels it. ``run()`` only reports: it drains the request
    counters and fails if the server task has died.
    """

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.API
    CONFIG_CLASS: ClassVar[type[ApiConfig]] = ApiConfig

    def __init__(self, cache: ClusterCache, config: ApiConfig | None = None) -> None:
        super().__init__(cache, config)
        self._server_task: asyncio.Task[None] | None = None
        self._stats = RequestStats()

    async def __aenter__(self) -> Api:
        await super().__aenter__()
        cfg = self._config
        self._server_task = asyncio.create_task(self._run_server(self._build_app()))
        self._logger.info(
            "http_server_started",
            host=cfg.host,
            port=cfg.port,
            route_prefix=cfg.route_prefix,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        task, self._server_task = self._server_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            self._logger.info("http_server_stopped")
        await super().__aexit__(exc_type, exc_val, exc_tb)

    async def run(self) -> None:
        """Log request counts since the previous cycle and export them."""
        task = self._server_task
        if task is not None and task.done():
            reason = None if task.cancelled() else task.exception()
            self._logger.error("http_server_crashed", error=str(reason or "cancelled"))
            raise RuntimeError("HTTP server task has stopped unexpectedly") from reason

        total, failed = self._stats.drain()
        self._logger.info(
            "cycle_stats",
            requests_total=total,
            requests_failed=failed,
            cache_synced=self._cache.is_synced,
        )
        self.inc_counter("requests_total", total)
        self.inc_counter("requests_failed", failed)

    def _resolve(self) -> list[Endpoint]:
        """Resolve endpoints against one snapshot, sorted by name and type."""
        resolve = self._config.resolve
        snapshot = self._cache.snapshot()
        endpoints = resolve_endpoints(
            snapshot,
            snapshot,
            resolve.namespace,
            resolve.compatibility,
            selector=resolve.label_selector,
        )
        return sorted(endpoints, key=lambda ep: (ep.dns_name, ep.record_type))

    def _build_app(self) -> FastAPI:
        """Construct the FastAPI application."""
        app = FastAPI(title="poddns API")
        prefix = self._config.route_prefix

        if self._config.cors_origins:
            app.add_middleware(
                CORSMiddleware,
                allow_origins=self._config.cors_origins,
                allow_methods=["GET"],
                allow_headers=["*"],
            )

        @app.middleware("http")
        async def account_requests(request: Request, call_next: Any) -> Response:
            start = time.monotonic()
            try:
                response: Response = await call_next(request)
            except Exception as exc:  # HTTP request error boundary
                self._logger.error("unhandled_error", error=str(exc), path=request.url.path)
                response = _error("Internal server error", 500)

            failed = self._stats.record(response.status_code)
            log = self._logger.warning if failed else self._logger.debug
            log(
                "request_failed" if failed else "request_completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.monotonic() - start) * 1000, 1),
            )
            return response

        @app.get("/health")
        async def health() -> JSONResponse:
            return JSONResponse({"status": "ok", "synced": self._cache.is_synced})

        @app.get(f"{prefix}/endpoints")
        async def list_endpoints(
            record_type: str | None = None,
            dns_name: str | None = None,
        ) -> JSONResponse:
            wanted_type: RecordType | None = None
            if record_type is not None:
                try:
                    wanted_type = RecordType(record_type.upper())
                except ValueError:
                    return _error(f"invalid record_type: {record_type}", 400)

            try:
                endpoints = self._resolve()
            except ClusterError as e:
                return _error(str(e), 503)

            if wanted_type is not None:
                endpoints = [ep for ep in endpoints if ep.record_type == wanted_type]
            if dns_name is not None:
                name = canonical_dns_name(dns_name)
                endpoints = [ep for ep in endpoints if ep.dns_name == name]

            return JSONResponse(
                {
                    "data": [ep.to_dict() for ep in endpoints],
                    "meta": {
                        "total": len(endpoints),
                        "namespace": self._config.resolve.namespace,
                        "compatibility": str(self._config.resolve.compatibility),
                    },
                }
            )

        @app.get(f"{prefix}/endpoints/{{dns_name}}")
        async def get_endpoint(dns_name: str) -> JSONResponse:
            try:
                endpoints = self._resolve()
            except ClusterError as e:
                return _error(str(e), 503)

            name = canonical_dns_name(dns_name)
            matches = [ep.to_dict() for ep in endpoints if ep.dns_name == name]
            if not matches:
                return _error(f"endpoint not found: {name}", 404)
            return JSONResponse({"data": matches})

        return app

    async def _run_server(self, app: FastAPI) -> None:
        """Serve *app* with uvicorn until cancelled."""
        server_config = uvicorn.Config(
            app,
            host=self._config.host,
            port=self._config.port,
            log_level="warning",
            access_log=False,
        )
        await uvicorn.Server(server_config).serve()
