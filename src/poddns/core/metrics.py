"""
Prometheus metrics and their HTTP exposition endpoint.

Metric objects are module-level singletons shared by every service in the
process. [BaseService.run_forever()][poddns.core.base_service.BaseService.run_forever]
records cycle outcomes and durations; services publish their own values
through ``set_gauge()`` and ``inc_counter()``, which land in the labelled
``SERVICE_GAUGE`` / ``SERVICE_COUNTER`` families.

Metric families:
    SERVICE_INFO:            Static metadata, set once per process.
    SERVICE_GAUGE:           Point-in-time values, e.g. ``endpoints``.
    SERVICE_COUNTER:         Monotonic totals, e.g. ``cycles_failed``.
    CYCLE_DURATION_SECONDS:  Histogram of ``run()`` durations.

[MetricsServer][poddns.core.metrics.MetricsServer] serves the registry on
an aiohttp endpoint when ``MetricsConfig.enabled`` is set.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from pydantic import BaseModel, Field


class MetricsConfig(BaseModel):
    """Prometheus endpoint settings, embedded in every service config.

    Bind ``host`` to ``"0.0.0.0"`` inside a container so the scraper can
    reach it.
    """

    enabled: bool = Field(default=False, description="Serve the metrics endpoint")
    port: int = Field(default=9102, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


SERVICE_INFO = Info(
    "poddns_service",
    "Service information and metadata",
)

# Resolution passes are in-memory; most cycles finish well under a second.
CYCLE_DURATION_SECONDS = Histogram(
    "poddns_cycle_duration_seconds",
    "Duration of one service cycle in seconds",
    ["service"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60),
)

# Labels written by BaseService.run_forever:
#   gauge:   consecutive_failures, last_cycle_timestamp
#   counter: cycles_success, cycles_failed, errors_{type}
# Labels written by the pod service:
#   gauge:   endpoints, targets, pods_listed, pods_skipped
SERVICE_GAUGE = Gauge(
    "poddns_service_gauge",
    "Service gauge values (point-in-time state)",
    ["service", "name"],
)

SERVICE_COUNTER = Counter(
    "poddns_service_counter",
    "Service counter values (cumulative totals)",
    ["service", "name"],
)


class MetricsServer:
    """aiohttp server exposing the Prometheus registry.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=9102))
        await server.start()
        ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Bind the endpoint; a no-op when metrics are disabled.

        Raises:
            OSError: If the address cannot be bound.
        """
        if not self._config.enabled:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        self._runner = web.AppRunner(app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()

    async def stop(self) -> None:
        """Release the bound port. Safe to call when never started."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )


async def start_metrics_server(config: MetricsConfig | None = None) -> MetricsServer:
    """Create a [MetricsServer][poddns.core.metrics.MetricsServer] and start it.

    The caller owns the returned server and must ``stop()`` it on shutdown.
    """
    server = MetricsServer(config or MetricsConfig())
    await server.start()
    return server
