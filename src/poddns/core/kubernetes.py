"""
Kubernetes API access for the cluster cache.

[KubernetesFetcher][poddns.core.kubernetes.KubernetesFetcher] is the
blocking callable the [ClusterCache][poddns.core.cache.ClusterCache] runs in
a worker thread: it lists pods (one namespace or all of them) and nodes
through ``CoreV1Api`` and returns a
[Snapshot][poddns.core.snapshot.Snapshot].

Credentials are resolved once, on first use, into a private
``kubernetes.client.Configuration``:

* ``in_cluster=True``: service account only.
* ``in_cluster=False``: kubeconfig only (``kubeconfig`` path and
  ``context``, or the client's defaults).
* ``in_cluster=None``: service account first, kubeconfig as fallback.

Every failure to load credentials or talk to the API server is raised as
[ClusterError][poddns.core.exceptions.ClusterError].
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from kubernetes import client
from kubernetes import config as kube_config
from kubernetes.client.exceptions import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import HTTPError

from poddns.models import Node, NodeAddress, NodeAddressType, Pod

from .exceptions import ClusterError
from .snapshot import Snapshot


logger = logging.getLogger(__name__)


def pod_from_k8s(obj: Any) -> Pod:
    """Convert a ``V1Pod`` into a [Pod][poddns.models.pod.Pod].

    Missing ``spec`` / ``status`` sections and ``None`` annotation or label
    maps are treated as empty.

    Raises:
        ValueError: If the object has no name or namespace.
    """
    metadata = obj.metadata
    spec = obj.spec
    status = obj.status
    return Pod(
        name=metadata.name or "",
        namespace=metadata.namespace or "",
        host_network=bool(spec is not None and spec.host_network),
        annotations=dict(metadata.annotations or {}),
        labels=dict(metadata.labels or {}),
        pod_ip=(status.pod_ip or "") if status is not None else "",
        node_name=(spec.node_name or "") if spec is not None else "",
    )


def node_from_k8s(obj: Any) -> Node:
    """Convert a ``V1Node`` into a [Node][poddns.models.node.Node].

    Addresses with an unknown type or an empty value are skipped; the
    remaining ones keep the order the node reports them in.
    """
    status = obj.status
    raw_addresses = (status.addresses or []) if status is not None else []

    addresses: list[NodeAddress] = []
    for raw in raw_addresses:
        if not raw.address:
            continue
        try:
            kind = NodeAddressType(raw.type)
        except ValueError:
            logger.debug("skipping address %s of unknown type %s", raw.address, raw.type)
            continue
        addresses.append(NodeAddress(raw.address, kind))

    return Node(name=obj.metadata.name or "", addresses=tuple(addresses))


def _convert_all(items: Iterable[Any], convert: Any, kind: str) -> list[Any]:
    converted = []
    for item in items:
        try:
            converted.append(convert(item))
        except (TypeError, ValueError) as e:
            name = getattr(getattr(item, "metadata", None), "name", None)
            logger.warning("skipping invalid %s %s: %s", kind, name, e)
    return converted


class KubernetesFetcher:
    """Blocking snapshot fetcher backed by the official Kubernetes client.

    Args:
        kubeconfig: Path to a kubeconfig file; ``None`` uses the client's
            default lookup (``KUBECONFIG`` or ``~/.kube/config``).
        context: Kubeconfig context; ``None`` uses the current one.
        in_cluster: Force (True) or forbid (False) service-account
            credentials; ``None`` tries them first.
        request_timeout: Per-request timeout in seconds.

    Examples:
        ```python
        fetcher = KubernetesFetcher(in_cluster=False, context="staging")
        snapshot = fetcher("kube-system")
        ```
    """

    def __init__(
        self,
        *,
        kubeconfig: str | None = None,
        context: str | None = None,
        in_cluster: bool | None = None,
        request_timeout: float = 30.0,
    ) -> None:
        self._kubeconfig = kubeconfig
        self._context = context
        self._in_cluster = in_cluster
        self._request_timeout = request_timeout
        self._api: client.CoreV1Api | None = None

    def _load_configuration(self) -> client.Configuration:
        configuration = client.Configuration()

        if self._in_cluster is not False:
            try:
                kube_config.load_incluster_config(client_configuration=configuration)
                logger.debug("using in-cluster service account credentials")
                return configuration
            except ConfigException as e:
                if self._in_cluster:
                    raise ClusterError(f"In-cluster credentials unavailable: {e}") from e

        try:
            kube_config.load_kube_config(
                config_file=self._kubeconfig,
                context=self._context,
                client_configuration=configuration,
            )
        except (ConfigException, OSError) as e:
            raise ClusterError(f"Could not load cluster credentials: {e}") from e
        logger.debug("using kubeconfig credentials from %s", self._kubeconfig or "default path")
        return configuration

    def _core_api(self) -> client.CoreV1Api:
        if self._api is None:
            self._api = client.CoreV1Api(client.ApiClient(self._load_configuration()))
        return self._api

    def __call__(self, namespace: str) -> Snapshot:
        """List pods in *namespace* (``""`` = all) and every node.

        Raises:
            ClusterError: On credential, transport or API errors.
        """
        api = self._core_api()
        try:
            if namespace:
                pod_list = api.list_namespaced_pod(
                    namespace, _request_timeout=self._request_timeout
                )
            else:
                pod_list = api.list_pod_for_all_namespaces(_request_timeout=self._request_timeout)
            node_list = api.list_node(_request_timeout=self._request_timeout)
        except ApiException as e:
            raise ClusterError(f"Kubernetes API error {e.status}: {e.reason}") from e
        except (HTTPError, OSError) as e:
            raise ClusterError(f"Kubernetes API unreachable: {e}") from e

        pods = _convert_all(pod_list.items or [], pod_from_k8s, "pod")
        nodes = _convert_all(node_list.items or [], node_from_k8s, "node")
        return Snapshot.build(pods=pods, nodes=nodes)
