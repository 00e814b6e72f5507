"""Pure frozen dataclasses with zero I/O for pods, nodes and DNS endpoints.

The models layer is the bottom of the package's dependency graph: it imports
only the standard library. Every model is
``@dataclass(frozen=True, slots=True)`` and validates itself in
``__post_init__``, so invalid instances never escape the constructor.

Attributes:
    Pod: Host-network flag, annotations, labels, pod IP and node name of a
        workload.
    Node: Node name and its advertised
        [NodeAddress][poddns.models.node.NodeAddress] list.
    Endpoint: One DNS name, one [RecordType][poddns.models.constants.RecordType]
        and the targets aggregated for that pair.
    EndpointKey: ``(dns_name, record_type)`` aggregation key.
    AnnotationKey: Annotation names read by the resolver.
    CompatibilityMode: Closed switch enabling the kops annotation names.

Note:
    Mapping fields are copied into ``MappingProxyType`` during
    ``__post_init__``; ``object.__setattr__`` is the usual way to set
    computed fields on a frozen dataclass before the instance is exposed.
"""

from .constants import (
    DNS_LABEL_MAX_LENGTH,
    AnnotationKey,
    CompatibilityMode,
    NodeAddressType,
    RecordType,
    ServiceName,
)
from .endpoint import Endpoint, EndpointKey, canonical_dns_name
from .node import Node, NodeAddress
from .pod import Pod


__all__ = [
    "DNS_LABEL_MAX_LENGTH",
    "AnnotationKey",
    "CompatibilityMode",
    "Endpoint",
    "EndpointKey",
    "Node",
    "NodeAddress",
    "NodeAddressType",
    "Pod",
    "RecordType",
    "ServiceName",
    "canonical_dns_name",
]
