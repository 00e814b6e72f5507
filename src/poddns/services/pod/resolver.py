"""
Endpoint derivation from annotated host-network pods.

For every pod with ``host_network`` set:

1. Each hostname in the internal-hostname annotation gets the pod IP as
   its single target.
2. Each hostname in the hostname annotation gets the addresses of the
   pod's node: every ``ExternalIP``, plus every ``InternalIP`` that is an
   IPv6 address (IPv6 node addresses are usually tagged internal although
   they are routable from outside).
3. In ``kops-dns-controller`` mode the kops annotation names are read as
   well, in addition to the standard ones.

Targets are grouped by ``(dns_name, record_type)`` in discovery order and
are not deduplicated; one [Endpoint][poddns.models.endpoint.Endpoint] is
emitted per group.

The functions here are synchronous and keep all state local to the call,
so they can run concurrently against the same snapshot.

Examples:
    ```python
    from poddns.core.snapshot import Snapshot
    from poddns.models import CompatibilityMode
    from poddns.services.pod.resolver import resolve_endpoints

    snapshot = Snapshot.build(pods=pods, nodes=nodes)
    endpoints = resolve_endpoints(snapshot, snapshot, "", CompatibilityMode.STANDARD)
    ```
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from poddns.core.logger import Logger
from poddns.core.snapshot import NodeGetter, PodLister
from poddns.models import (
    AnnotationKey,
    CompatibilityMode,
    Endpoint,
    EndpointKey,
    Node,
    Pod,
    RecordType,
    canonical_dns_name,
)
from poddns.utils.dns import split_hostname_annotation, suitable_type


_logger = Logger("pod.resolver")

# (internal-hostname key, hostname key) pairs honored per mode, in read order.
_STANDARD_KEYS = (AnnotationKey.INTERNAL_HOSTNAME, AnnotationKey.HOSTNAME)
_KOPS_KEYS = (AnnotationKey.KOPS_INTERNAL_HOSTNAME, AnnotationKey.KOPS_HOSTNAME)

ANNOTATION_KEYS: dict[CompatibilityMode, tuple[tuple[AnnotationKey, AnnotationKey], ...]] = {
    CompatibilityMode.STANDARD: (_STANDARD_KEYS,),
    CompatibilityMode.KOPS_DNS_CONTROLLER: (_STANDARD_KEYS, _KOPS_KEYS),
}


def node_targets(node: Node) -> list[tuple[RecordType, str]]:
    """Return the ``(record_type, address)`` pairs a node can publish.

    ``ExternalIP`` addresses of either family are eligible; ``InternalIP``
    addresses only when they classify as ``AAAA``. All other address kinds
    are ignored.
    """
    targets = []
    for address in node.addresses:
        record_type = suitable_type(address.address)
        if address.is_external_ip or (
            address.is_internal_ip and record_type == RecordType.AAAA
        ):
            targets.append((record_type, address.address))
    return targets


class _EndpointMap:
    """Insertion-ordered accumulator of targets per endpoint key."""

    __slots__ = ("_targets",)

    def __init__(self) -> None:
        self._targets: dict[EndpointKey, list[str]] = {}

    def add(self, dns_name: str, record_type: RecordType, target: str) -> None:
        # Group on the exact name Endpoint stores; "." and ".." reduce to "".
        key = EndpointKey(canonical_dns_name(dns_name), record_type)
        if not key.dns_name:
            return
        self._targets.setdefault(key, []).append(target)

    def endpoints(self) -> list[Endpoint]:
        return [
            Endpoint(key.dns_name, key.record_type, tuple(targets))
            for key, targets in self._targets.items()
        ]


def _add_internal_hostnames(endpoint_map: _EndpointMap, pod: Pod, value: str) -> None:
    hostnames = split_hostname_annotation(value)
    if not hostnames:
        return
    if not pod.pod_ip:
        _logger.debug(
            "pod_ip_missing",
            pod=pod.name,
            namespace=pod.namespace,
            hostnames=",".join(hostnames),
        )
        return
    record_type = suitable_type(pod.pod_ip)
    for hostname in hostnames:
        endpoint_map.add(hostname, record_type, pod.pod_ip)


def _add_node_hostnames(
    endpoint_map: _EndpointMap, pod: Pod, value: str, nodes: NodeGetter
) -> None:
    hostnames = split_hostname_annotation(value)
    if not hostnames:
        return
    node = nodes.get_node(pod.node_name) if pod.node_name else None
    if node is None:
        _logger.debug(
            "node_not_found",
            pod=pod.name,
            namespace=pod.namespace,
            node=pod.node_name,
        )
        return
    targets = node_targets(node)
    for hostname in hostnames:
        for record_type, address in targets:
            endpoint_map.add(hostname, record_type, address)


def endpoints_from_pods(
    pods: Iterable[Pod],
    nodes: NodeGetter,
    compatibility: CompatibilityMode = CompatibilityMode.STANDARD,
) -> list[Endpoint]:
    """Derive endpoints from already listed pods.

    Args:
        pods: Pods in listing order.
        nodes: Node lookup; a missing node contributes no targets.
        compatibility: Selects the annotation names honored.

    Returns:
        One endpoint per distinct ``(dns_name, record_type)``. The order is
        the order in which keys were first seen, but callers must not rely
        on it.
    """
    key_pairs = ANNOTATION_KEYS[CompatibilityMode(compatibility)]
    endpoint_map = _EndpointMap()

    for pod in pods:
        if not pod.host_network:
            _logger.debug("pod_skipped", pod=pod.name, namespace=pod.namespace, host_network=False)
            continue

        for internal_key, hostname_key in key_pairs:
            internal = pod.annotations.get(internal_key)
            if internal is not None:
                _add_internal_hostnames(endpoint_map, pod, internal)

            hostname = pod.annotations.get(hostname_key)
            if hostname is not None:
                _add_node_hostnames(endpoint_map, pod, hostname, nodes)

    return endpoint_map.endpoints()


def resolve_endpoints(
    pods: PodLister,
    nodes: NodeGetter,
    namespace: str,
    compatibility: CompatibilityMode = CompatibilityMode.STANDARD,
    *,
    selector: Mapping[str, str] | None = None,
) -> list[Endpoint]:
    """List pods in *namespace* and derive their endpoints.

    Args:
        pods: Pod source; ``namespace == ""`` lists every namespace.
        nodes: Node lookup.
        namespace: Namespace passed to ``pods.list_pods``.
        compatibility: Selects the annotation names honored.
        selector: Optional label selector passed to ``pods.list_pods``.

    Raises:
        Exception: Whatever ``pods.list_pods`` raises (typically
            [ClusterError][poddns.core.exceptions.ClusterError]) propagates
            unchanged; no partial result is produced.
    """
    listed = pods.list_pods(namespace, selector)
    return endpoints_from_pods(listed, nodes, compatibility)
