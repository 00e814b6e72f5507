"""
Pytest configuration and shared fixtures for poddns tests.

Provides:
- Factories for pods and nodes
- A sample snapshot covering host-network, regular and kops-annotated pods
- ClusterCache instances backed by an in-memory fetcher
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import pytest

from poddns.core.cache import CacheRetryConfig, ClusterCache, ClusterConfig
from poddns.core.snapshot import Snapshot
from poddns.models import AnnotationKey, Node, NodeAddress, NodeAddressType, Pod


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Model Factories
# ============================================================================


@pytest.fixture
def make_pod() -> Callable[..., Pod]:
    """Build a host-network pod with sensible defaults."""

    def _make(
        name: str = "pod-0",
        namespace: str = "default",
        *,
        host_network: bool = True,
        annotations: dict[str, str] | None = None,
        labels: dict[str, str] | None = None,
        pod_ip: str = "192.0.2.10",
        node_name: str = "node-1",
    ) -> Pod:
        return Pod(
            name=name,
            namespace=namespace,
            host_network=host_network,
            annotations=annotations or {},
            labels=labels or {},
            pod_ip=pod_ip,
            node_name=node_name,
        )

    return _make


@pytest.fixture
def make_node() -> Callable[..., Node]:
    """Build a node from ``(address, type)`` pairs."""

    def _make(name: str = "node-1", *addresses: tuple[str, str]) -> Node:
        return Node(
            name=name,
            addresses=tuple(NodeAddress(address, kind) for address, kind in addresses),
        )

    return _make


@pytest.fixture
def dual_stack_node(make_node: Callable[..., Node]) -> Node:
    """Node with IPv4/IPv6 addresses of both scopes plus a hostname."""
    return make_node(
        "node-1",
        ("203.0.113.5", NodeAddressType.EXTERNAL_IP),
        ("10.0.0.1", NodeAddressType.INTERNAL_IP),
        ("2001:db8::5", NodeAddressType.INTERNAL_IP),
        ("node-1.internal", NodeAddressType.HOSTNAME),
    )


# ============================================================================
# Snapshot & Cache Fixtures
# ============================================================================


@pytest.fixture
def sample_snapshot(make_pod: Callable[..., Pod], dual_stack_node: Node) -> Snapshot:
    """Snapshot with one annotated host-network pod per namespace and one regular pod."""
    return Snapshot.build(
        pods=[
            make_pod(
                "ingress-0",
                "kube-system",
                annotations={
                    AnnotationKey.INTERNAL_HOSTNAME: "internal.example.com",
                    AnnotationKey.HOSTNAME: "svc.example.com",
                },
                labels={"app": "ingress"},
            ),
            make_pod(
                "web-0",
                "default",
                host_network=False,
                annotations={AnnotationKey.HOSTNAME: "web.example.com"},
                pod_ip="10.244.0.7",
            ),
            make_pod(
                "legacy-0",
                "default",
                annotations={AnnotationKey.KOPS_INTERNAL_HOSTNAME: "legacy.example.com"},
                pod_ip="192.0.2.20",
            ),
        ],
        nodes=[dual_stack_node],
        taken_at=1_700_000_000.0,
    )


class StaticFetcher:
    """In-memory fetcher returning a fixed snapshot, or raising queued errors first."""

    def __init__(self, snapshot: Snapshot, errors: list[Exception] | None = None) -> None:
        self.snapshot = snapshot
        self.errors = list(errors or [])
        self.calls: list[str] = []

    def __call__(self, namespace: str) -> Snapshot:
        self.calls.append(namespace)
        if self.errors:
            raise self.errors.pop(0)
        return self.snapshot


@pytest.fixture
def static_fetcher(sample_snapshot: Snapshot) -> StaticFetcher:
    return StaticFetcher(sample_snapshot)


@pytest.fixture
def fast_cluster_config() -> ClusterConfig:
    """Cluster config with minimal delays."""
    return ClusterConfig(
        resync_interval=1.0,
        sync_timeout=1.0,
        retry=CacheRetryConfig(max_attempts=3, initial_delay=0.1, max_delay=0.1),
    )


@pytest.fixture
def synced_cache(
    fast_cluster_config: ClusterConfig,
    static_fetcher: StaticFetcher,
    sample_snapshot: Snapshot,
) -> ClusterCache:
    """ClusterCache already holding ``sample_snapshot``."""
    cache = ClusterCache(config=fast_cluster_config, fetcher=static_fetcher)
    cache._snapshot = sample_snapshot
    cache._synced.set()
    return cache


@pytest.fixture
def unsynced_cache(
    fast_cluster_config: ClusterConfig, static_fetcher: StaticFetcher
) -> ClusterCache:
    """ClusterCache that has never refreshed."""
    return ClusterCache(config=fast_cluster_config, fetcher=static_fetcher)


@pytest.fixture
def pod_config_dict() -> dict[str, Any]:
    """Sample pod service configuration dictionary."""
    return {
        "interval": 30.0,
        "resolve": {
            "namespace": "kube-system",
            "compatibility": "kops-dns-controller",
            "label_selector": {"app": "ingress"},
        },
    }
