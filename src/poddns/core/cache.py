"""
Periodically refreshed, in-memory view of pods and nodes.

[ClusterCache][poddns.core.cache.ClusterCache] owns the current
[Snapshot][poddns.core.snapshot.Snapshot] and replaces it on every
successful refresh. Fetching runs in a worker thread (the Kubernetes client
is blocking) with retry and exponential or linear backoff; a background
task repeats the refresh every ``resync_interval`` seconds.

Readers never wait on a refresh: [snapshot()][poddns.core.cache.ClusterCache.snapshot]
returns whatever was installed last. Before the first successful refresh
the cache refuses to answer, so nothing resolves against an empty view.

See Also:
    [KubernetesFetcher][poddns.core.kubernetes.KubernetesFetcher]: Default
        fetcher.
    [ClusterConfig][poddns.core.cache.ClusterConfig]: Configuration model.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any, Self

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from poddns.models import Node, Pod

from .exceptions import CacheNotSyncedError, CacheSyncError, ClusterError
from .kubernetes import KubernetesFetcher
from .logger import Logger
from .snapshot import Snapshot
from .yaml import load_yaml


# Blocking callable: namespace ("" = all) -> Snapshot. Raises ClusterError.
SnapshotFetcher = Callable[[str], Snapshot]


# ---------------------------------------------------------------------------
# Configuration Models
# ---------------------------------------------------------------------------


class CacheRetryConfig(BaseModel):
    """Retry strategy for failed refreshes.

    Exponential backoff waits ``initial_delay * 2^attempt``, linear backoff
    ``initial_delay * (attempt + 1)``; both are capped at ``max_delay``.
    """

    max_attempts: int = Field(default=3, ge=1, le=10, description="Max fetch attempts")
    initial_delay: float = Field(default=1.0, ge=0.1, description="Initial retry delay")
    max_delay: float = Field(default=10.0, ge=0.1, description="Maximum retry delay")
    exponential_backoff: bool = Field(default=True, description="Use exponential backoff")

    @field_validator("max_delay")
    @classmethod
    def validate_max_delay(cls, v: float, info: ValidationInfo) -> float:
        """Ensure max_delay >= initial_delay."""
        initial_delay = info.data.get("initial_delay", 1.0)
        if v < initial_delay:
            raise ValueError(f"max_delay ({v}) must be >= initial_delay ({initial_delay})")
        return v


class ClusterConfig(BaseModel):
    """Where and how often the cache reads cluster state.

    Loaded from ``config/cluster.yaml`` by the CLI.
    """

    namespace: str = Field(default="", description='Namespace scope ("" = all namespaces)')
    kubeconfig: str | None = Field(default=None, description="Path to a kubeconfig file")
    context: str | None = Field(default=None, description="Kubeconfig context")
    in_cluster: bool | None = Field(
        default=None,
        description="Use service-account credentials (None = try, then fall back)",
    )
    resync_interval: float = Field(
        default=30.0, ge=1.0, description="Seconds between background refreshes"
    )
    sync_timeout: float = Field(
        default=60.0, gt=0.0, description="Seconds to wait for the first snapshot"
    )
    request_timeout: float = Field(
        default=30.0, ge=1.0, description="Per-request Kubernetes API timeout"
    )
    retry: CacheRetryConfig = Field(default_factory=CacheRetryConfig)


# ---------------------------------------------------------------------------
# Cluster Cache
# ---------------------------------------------------------------------------


class ClusterCache:
    """Snapshot holder with background refresh and a readiness barrier.

    Implements [PodLister][poddns.core.snapshot.PodLister] and
    [NodeGetter][poddns.core.snapshot.NodeGetter] by delegating to the
    current snapshot. Callers that need several reads to agree (the
    resolver does) should take ``snapshot()`` once and read from it.

    Args:
        config: Cache configuration; defaults to ``ClusterConfig()``.
        fetcher: Blocking snapshot source. Defaults to a
            [KubernetesFetcher][poddns.core.kubernetes.KubernetesFetcher]
            built from ``config``.

    Examples:
        ```python
        cache = ClusterCache.from_yaml("config/cluster.yaml")

        async with cache:  # start() + wait_for_sync()
            snapshot = cache.snapshot()
            pods = snapshot.list_pods("kube-system")
        ```
    """

    def __init__(
        self,
        config: ClusterConfig | None = None,
        fetcher: SnapshotFetcher | None = None,
    ) -> None:
        self._config = config or ClusterConfig()
        self._fetcher: SnapshotFetcher = fetcher or KubernetesFetcher(
            kubeconfig=self._config.kubeconfig,
            context=self._config.context,
            in_cluster=self._config.in_cluster,
            request_timeout=self._config.request_timeout,
        )
        self._snapshot: Snapshot | None = None
        self._synced = asyncio.Event()
        self._refresh_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._logger = Logger("cache").bind(namespace=self._config.namespace or "*")

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str, **kwargs: Any) -> Self:
        """Create a cache from a YAML file (see [load_yaml()][poddns.core.yaml.load_yaml])."""
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Create a cache from a dictionary parsed into ``ClusterConfig``."""
        return cls(config=ClusterConfig(**data), **kwargs)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> ClusterConfig:
        return self._config

    @property
    def is_synced(self) -> bool:
        """Whether at least one refresh has succeeded."""
        return self._synced.is_set()

    @property
    def is_running(self) -> bool:
        """Whether the background refresh task is active."""
        return self._task is not None and not self._task.done()

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    def _retry_delay(self, attempt: int) -> float:
        """Compute retry backoff delay for the given attempt number."""
        retry = self._config.retry
        if retry.exponential_backoff:
            delay = retry.initial_delay * (2**attempt)
        else:
            delay = retry.initial_delay * (attempt + 1)
        return float(min(delay, retry.max_delay))

    async def refresh(self) -> Snapshot:
        """Fetch a new snapshot and install it.

        Concurrent calls are serialized. Only
        [ClusterError][poddns.core.exceptions.ClusterError] is retried;
        anything else raised by the fetcher propagates immediately.

        Returns:
            The newly installed snapshot.

        Raises:
            ClusterError: If every attempt failed. The previous snapshot
                (if any) stays installed.
        """
        async with self._refresh_lock:
            max_attempts = self._config.retry.max_attempts
            attempt = 0
            while True:
                try:
                    snapshot = await asyncio.to_thread(self._fetcher, self._config.namespace)
                    break
                except ClusterError as e:
                    attempt += 1
                    if attempt >= max_attempts:
                        self._logger.error("refresh_failed", attempts=attempt, error=str(e))
                        raise
                    delay = self._retry_delay(attempt - 1)
                    self._logger.warning(
                        "refresh_retry",
                        attempt=attempt,
                        delay_s=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

            first_sync = not self._synced.is_set()
            self._snapshot = snapshot
            self._synced.set()

            self._logger.info(
                "cache_synced" if first_sync else "cache_refreshed",
                pods=len(snapshot.pods),
                nodes=len(snapshot.nodes),
            )
            return snapshot

    async def _refresh_loop(self) -> None:
        """Refresh every ``resync_interval`` until cancelled.

        A failed refresh keeps the last good snapshot; the loop only ends on
        cancellation.
        """
        while True:
            try:
                await self.refresh()
            except Exception as e:  # background refresh error boundary
                self._logger.error(
                    "background_refresh_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    keeping_stale=self._snapshot is not None,
                )
            await asyncio.sleep(self._config.resync_interval)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the background refresh task. Idempotent."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._refresh_loop(), name="poddns-cache-refresh")
        self._logger.info("cache_started", resync_interval=self._config.resync_interval)

    async def stop(self) -> None:
        """Cancel the background refresh task. Safe to call when not started."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._logger.info("cache_stopped")

    async def wait_for_sync(self, timeout: float | None = None) -> None:  # noqa: ASYNC109
        """Block until the first snapshot is installed.

        Args:
            timeout: Seconds to wait; defaults to ``config.sync_timeout``.

        Raises:
            CacheSyncError: If no snapshot arrived in time.
        """
        if self._synced.is_set():
            return
        if timeout is None:
            timeout = self._config.sync_timeout
        try:
            await asyncio.wait_for(self._synced.wait(), timeout=timeout)
        except TimeoutError as e:
            raise CacheSyncError(f"Cluster cache did not sync within {timeout}s") from e

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        """Return the current snapshot.

        Raises:
            CacheNotSyncedError: If no refresh has succeeded yet.
        """
        if self._snapshot is None:
            raise CacheNotSyncedError("Cluster cache has not completed its first sync")
        return self._snapshot

    def list_pods(
        self, namespace: str, selector: Mapping[str, str] | None = None
    ) -> list[Pod]:
        return self.snapshot().list_pods(namespace, selector)

    def get_node(self, name: str) -> Node | None:
        return self.snapshot().get_node(name)

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        """Start refreshing and wait for the first snapshot."""
        self.start()
        try:
            await self.wait_for_sync()
        except BaseException:
            await self.stop()
            raise
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()

    def __repr__(self) -> str:
        namespace = self._config.namespace or "*"
        return f"ClusterCache(namespace={namespace!r}, synced={self.is_synced})"
