"""CLI entry point for poddns services.

Runs one service against a shared
[ClusterCache][poddns.core.cache.ClusterCache], either for a single cycle
(``--once``) or continuously with a Prometheus metrics server.

Examples:
    ```bash
    python -m poddns <service> [options]
    python -m poddns pod --once
    python -m poddns pod --log-level DEBUG
    python -m poddns api --config config/services/api.yaml
    ```
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any, NamedTuple

from poddns.core import ClusterCache, start_metrics_server
from poddns.core.base_service import BaseService
from poddns.core.exceptions import ClusterError, ConfigurationError
from poddns.core.logger import Logger, StructuredFormatter
from poddns.core.yaml import load_yaml
from poddns.models.constants import ServiceName
from poddns.services.api import Api
from poddns.services.pod import PodSource


CONFIG_BASE = Path("config")
CLUSTER_CONFIG = CONFIG_BASE / "cluster.yaml"


class ServiceEntry(NamedTuple):
    """Registry entry mapping a service to its class and default config path."""

    cls: type[BaseService[Any]]
    config_path: Path


SERVICE_REGISTRY: dict[str, ServiceEntry] = {
    ServiceName.POD: ServiceEntry(PodSource, CONFIG_BASE / "services" / "pod.yaml"),
    ServiceName.API: ServiceEntry(Api, CONFIG_BASE / "services" / "api.yaml"),
}

logger = Logger("cli")


async def _run_once(service: BaseService[Any], service_name: str) -> int:
    try:
        async with service:
            await service.run()
    except Exception as e:  # CLI error boundary for one-shot mode
        logger.error(f"{service_name}_failed", error=str(e))
        return 1
    logger.info(f"{service_name}_completed")
    return 0


def _stop_on_signals(service: BaseService[Any]) -> None:
    """Route SIGINT and SIGTERM to ``service.request_shutdown()``."""

    def on_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        service.request_shutdown()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, on_signal, sig)


async def _run_continuous(service: BaseService[Any], service_name: str) -> int:
    metrics = service.config.metrics
    metrics_server = await start_metrics_server(metrics)
    if metrics.enabled:
        logger.info(
            "metrics_server_started", host=metrics.host, port=metrics.port, path=metrics.path
        )

    _stop_on_signals(service)
    try:
        async with service:
            await service.run_forever()
    except Exception as e:  # CLI error boundary for continuous mode
        logger.error(f"{service_name}_failed", error=str(e))
        return 1
    finally:
        await metrics_server.stop()
        if metrics.enabled:
            logger.info("metrics_server_stopped")
    return 0


async def run_service(
    service_name: str,
    service_class: type[BaseService[Any]],
    cache: ClusterCache,
    service_dict: dict[str, Any],
    *,
    once: bool,
) -> int:
    """Build *service_class* on top of *cache* and run it.

    Args:
        service_name: Name used in the ``<name>_completed`` / ``<name>_failed``
            log events.
        service_class: The BaseService subclass to instantiate.
        cache: Synced cluster cache.
        service_dict: Parsed service configuration (without ``cluster`` key).
        once: Run a single cycle instead of ``run_forever()``.

    Returns:
        Process exit code: 0 on success, 1 when the service failed.

    Raises:
        ValueError: If *service_dict* does not validate against the
            service's config class.
    """
    service = (
        service_class.from_dict(service_dict, cache=cache)
        if service_dict
        else service_class(cache=cache)
    )
    if once:
        return await _run_once(service, service_name)
    return await _run_continuous(service, service_name)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse ``poddns <service> [options]``."""
    parser = argparse.ArgumentParser(
        prog="poddns",
        description="Derive DNS endpoints from annotated host-network pods",
    )
    parser.add_argument("service", choices=sorted(SERVICE_REGISTRY), help="Service to run")
    parser.add_argument(
        "--config",
        type=Path,
        help="Service config file (default: config/services/<service>.yaml)",
    )
    parser.add_argument(
        "--cluster-config",
        type=Path,
        default=CLUSTER_CONFIG,
        help=f"Cluster cache config file (default: {CLUSTER_CONFIG})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Resolve a single cycle and exit",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Install ``StructuredFormatter`` on the root handler.

    Records from ``Logger`` and from plain ``logging.getLogger()`` calls in
    models and utils come out as ``level name message key=value ...``.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    """Load a YAML file as a dict, returning ``{}`` if the file does not exist."""
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return {}
    return load_yaml(str(path))


def _apply_cluster_overrides(
    cluster_dict: dict[str, Any],
    cluster_overrides: dict[str, Any] | None,
    service_dict: dict[str, Any],
) -> None:
    """Merge per-service cluster settings into the shared cluster configuration.

    Keys under the service file's ``cluster`` section win over
    ``cluster.yaml``. When neither sets a namespace, the cache is scoped to
    the service's ``resolve.namespace`` so it lists no more than needed.
    """
    if cluster_overrides:
        retry_overrides = cluster_overrides.get("retry")
        cluster_dict.update({k: v for k, v in cluster_overrides.items() if k != "retry"})
        if retry_overrides:
            cluster_dict.setdefault("retry", {}).update(retry_overrides)

    if not cluster_dict.get("namespace"):
        namespace = (service_dict.get("resolve") or {}).get("namespace")
        if namespace:
            cluster_dict["namespace"] = namespace


def _load_configs(cluster_path: Path, service_path: Path) -> tuple[ClusterCache, dict[str, Any]]:
    """Build the cache from *cluster_path* and return it with the service settings.

    The service file's optional ``cluster`` section is split off and merged
    into the cluster settings.
    """
    cluster_dict = _load_yaml_dict(cluster_path)
    service_dict = _load_yaml_dict(service_path)
    _apply_cluster_overrides(cluster_dict, service_dict.pop("cluster", None), service_dict)
    cache = ClusterCache.from_dict(cluster_dict) if cluster_dict else ClusterCache()
    return cache, service_dict


async def main(argv: list[str] | None = None) -> int:
    """Parse args, wait for the cluster cache to sync, then run the service.

    Returns:
        0 on success, 1 on configuration, cluster or service failure, 130
        when interrupted.
    """
    args = parse_args(argv)
    setup_logging(args.log_level)
    entry = SERVICE_REGISTRY[args.service]

    try:
        cache, service_dict = _load_configs(args.cluster_config, args.config or entry.config_path)
    except (ConfigurationError, ValueError) as e:
        logger.error("config_invalid", error=str(e))
        return 1

    try:
        async with cache:
            return await run_service(
                args.service, entry.cls, cache, service_dict, once=args.once
            )
    except ClusterError as e:
        logger.error("cluster_unavailable", error=str(e))
    except ValueError as e:
        logger.error("config_invalid", error=str(e))
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130
    return 1


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
