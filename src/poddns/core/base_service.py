"""
Abstract base class for long-running poddns services.

``BaseService[ConfigT]`` gives every service the same lifecycle: a
structured [Logger][poddns.core.logger.Logger] named after the service,
graceful shutdown through an ``asyncio.Event``, interval-based cycling with
[run_forever()][poddns.core.base_service.BaseService.run_forever], a
consecutive-failure limit and Prometheus bookkeeping.

Services read cluster state only through the injected
[ClusterCache][poddns.core.cache.ClusterCache]; they keep no state of their
own between cycles beyond the last result they expose.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any, ClassVar, Generic, Self, TypeVar, cast

from pydantic import BaseModel, Field

from poddns.models.constants import ServiceName

from .cache import ClusterCache
from .logger import Logger
from .metrics import (
    CYCLE_DURATION_SECONDS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
)
from .yaml import load_yaml


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class BaseServiceConfig(BaseModel):
    """Configuration shared by every service that runs in a loop.

    Subclass this to add service-specific fields.
    """

    interval: float = Field(
        default=60.0,
        ge=1.0,
        description="Seconds between run cycles",
    )
    max_consecutive_failures: int = Field(
        default=5,
        ge=0,
        description="Stop after this many consecutive errors (0 = unlimited)",
    )
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics configuration",
    )


ConfigT = TypeVar("ConfigT", bound=BaseServiceConfig)


class BaseService(ABC, Generic[ConfigT]):
    """Abstract base class for all poddns services.

    Subclasses set ``SERVICE_NAME`` and ``CONFIG_CLASS`` and implement
    [run()][poddns.core.base_service.BaseService.run].

    Attributes:
        SERVICE_NAME: Identifier used in logging and metric labels.
        CONFIG_CLASS: Pydantic model the factory methods parse into.
        _cache: [ClusterCache][poddns.core.cache.ClusterCache] providing the
            pod and node snapshot.
        _config: Typed service configuration.
        _logger: Logger named after the service.
        _shutdown_event: Clear while running, set once shutdown is requested.

    Note:
        The lifecycle is ``async with cache:`` then ``async with service:``
        then [run_forever()][poddns.core.base_service.BaseService.run_forever]
        (or a single [run()][poddns.core.base_service.BaseService.run] with
        ``--once``).
    """

    SERVICE_NAME: ClassVar[ServiceName]
    CONFIG_CLASS: ClassVar[type[BaseModel]]

    def __init__(self, cache: ClusterCache, config: ConfigT | None = None) -> None:
        self._cache = cache
        self._config: ConfigT = (
            config if config is not None else cast("ConfigT", self.CONFIG_CLASS())
        )
        self._logger = Logger(self.SERVICE_NAME)
        self._shutdown_event = asyncio.Event()

    @property
    def config(self) -> ConfigT:
        """The typed service configuration (read-only)."""
        return self._config

    @property
    def cache(self) -> ClusterCache:
        return self._cache

    @abstractmethod
    async def run(self) -> None:
        """Execute one bounded cycle of the service's work."""
        ...

    def request_shutdown(self) -> None:
        """Ask [run_forever()][poddns.core.base_service.BaseService.run_forever] to stop.

        Safe to call from signal handlers.
        """
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        """Whether shutdown has not been requested yet."""
        return not self._shutdown_event.is_set()

    async def wait(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Sleep up to *timeout* seconds, waking early on shutdown.

        Returns:
            True if shutdown was requested during the wait, False if the
            timeout elapsed.
        """
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
            return True
        except TimeoutError:
            return False

    async def run_forever(self) -> None:
        """Call [run()][poddns.core.base_service.BaseService.run] every ``config.interval`` seconds.

        Exits on [request_shutdown()][poddns.core.base_service.BaseService.request_shutdown]
        or once ``config.max_consecutive_failures`` cycles in a row have
        failed (``0`` disables the limit). A successful cycle resets the
        streak.

        Tracked metrics: ``cycles_success``, ``cycles_failed`` and
        ``errors_{ExceptionType}`` counters; ``consecutive_failures`` and
        ``last_cycle_timestamp`` gauges; the cycle duration histogram.

        ``CancelledError``, ``KeyboardInterrupt`` and ``SystemExit`` propagate
        without being counted.
        """
        cfg = self._config
        if cfg.metrics.enabled:
            SERVICE_INFO.info({"service": self.SERVICE_NAME})

        self._logger.info(
            "run_forever_started",
            interval=cfg.interval,
            max_consecutive_failures=cfg.max_consecutive_failures,
        )

        streak = 0
        while self.is_running:
            error = await self._cycle()
            streak = 0 if error is None else streak + 1
            self.set_gauge("consecutive_failures", streak)

            if error is not None:
                self._logger.error(
                    "run_cycle_error",
                    error=str(error),
                    error_type=type(error).__name__,
                    consecutive_failures=streak,
                )
                if self._failure_limit_reached(streak):
                    break

            if await self.wait(cfg.interval):
                break

        self._logger.info("run_forever_stopped")

    async def _cycle(self) -> Exception | None:
        """Run one cycle and record its outcome; return the error it raised, if any."""
        started = time.monotonic()
        try:
            await self.run()
        except (asyncio.CancelledError, KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:  # top-level error boundary of the loop
            self.inc_counter("cycles_failed")
            self.inc_counter(f"errors_{type(e).__name__}")
            return e

        self.inc_counter("cycles_success")
        self.set_gauge("last_cycle_timestamp", time.time())
        if self._config.metrics.enabled:
            CYCLE_DURATION_SECONDS.labels(service=self.SERVICE_NAME).observe(
                time.monotonic() - started
            )
        self._logger.info("cycle_completed", next_cycle_s=self._config.interval)
        return None

    def _failure_limit_reached(self, streak: int) -> bool:
        limit = self._config.max_consecutive_failures
        if limit == 0 or streak < limit:
            return False
        self._logger.critical("max_consecutive_failures_reached", failures=streak, limit=limit)
        return True

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str, cache: ClusterCache, **kwargs: Any) -> Self:
        """Create a service from a YAML configuration file."""
        return cls.from_dict(load_yaml(config_path), cache=cache, **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], cache: ClusterCache, **kwargs: Any) -> Self:
        """Create a service from a dictionary parsed into ``CONFIG_CLASS``."""
        config = cast("ConfigT", cls.CONFIG_CLASS(**data))
        return cls(cache=cache, config=config, **kwargs)

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        self._shutdown_event.clear()
        self._logger.info("service_started")
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        self._shutdown_event.set()
        self._logger.info("service_stopped")

    # -------------------------------------------------------------------------
    # Custom Metrics
    # -------------------------------------------------------------------------

    def set_gauge(self, name: str, value: float) -> None:
        """Set a ``SERVICE_GAUGE`` value for this service. No-op when metrics are off."""
        if not self._config.metrics.enabled:
            return
        SERVICE_GAUGE.labels(service=self.SERVICE_NAME, name=name).set(value)

    def inc_counter(self, name: str, value: float = 1) -> None:
        """Increment a ``SERVICE_COUNTER`` value for this service. No-op when metrics are off."""
        if not self._config.metrics.enabled:
            return
        SERVICE_COUNTER.labels(service=self.SERVICE_NAME, name=name).inc(value)
