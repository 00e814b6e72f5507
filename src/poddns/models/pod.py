"""
Read-only view of a cluster pod.

Only the fields the endpoint resolver needs are kept: identity, the
host-network flag, annotations, labels, the pod IP and the node it is
scheduled on. Instances are built by
[pod_from_k8s()][poddns.core.kubernetes.pod_from_k8s] or directly in tests.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ._validation import (
    freeze_mapping,
    validate_instance,
    validate_str_mapping,
    validate_str_no_null,
    validate_str_not_empty,
)


@dataclass(frozen=True, slots=True)
class Pod:
    """Immutable pod snapshot.

    Attributes:
        name: Pod name.
        namespace: Namespace the pod lives in.
        host_network: Whether the pod shares its node's network namespace.
            Only such pods are eligible for endpoint resolution.
        annotations: Annotation key/value pairs (read-only).
        labels: Label key/value pairs (read-only), matched by label
            selectors when listing.
        pod_ip: Current pod IP, or ``""`` while none is assigned.
        node_name: Name of the node the pod is scheduled on, or ``""``
            while unscheduled.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If ``name`` or ``namespace`` is empty, or a string
            contains null bytes.

    Examples:
        ```python
        pod = Pod(
            name="ingress-0",
            namespace="kube-system",
            host_network=True,
            annotations={"external-dns.alpha.kubernetes.io/hostname": "a.example.com"},
            pod_ip="10.0.0.5",
            node_name="node-1",
        )
        pod.matches({"app": "ingress"})  # False, no labels
        ```
    """

    name: str
    namespace: str
    host_network: bool = False
    annotations: Mapping[str, str] = field(default_factory=dict, hash=False)
    labels: Mapping[str, str] = field(default_factory=dict, hash=False)
    pod_ip: str = ""
    node_name: str = ""

    def __post_init__(self) -> None:
        validate_str_not_empty(self.name, "name")
        validate_str_not_empty(self.namespace, "namespace")
        validate_instance(self.host_network, bool, "host_network")
        validate_str_mapping(self.annotations, "annotations")
        validate_str_mapping(self.labels, "labels")
        validate_str_no_null(self.pod_ip, "pod_ip")
        validate_str_no_null(self.node_name, "node_name")

        object.__setattr__(self, "annotations", freeze_mapping(self.annotations))
        object.__setattr__(self, "labels", freeze_mapping(self.labels))

    def matches(self, selector: Mapping[str, str] | None) -> bool:
        """Return True if every label in *selector* is set to the same value on the pod.

        An empty or missing selector matches every pod.
        """
        if not selector:
            return True
        return all(self.labels.get(key) == value for key, value in selector.items())
