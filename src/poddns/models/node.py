"""
Read-only view of a cluster node and the addresses it advertises.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ._validation import validate_instance, validate_str_not_empty
from .constants import NodeAddressType


@dataclass(frozen=True, slots=True)
class NodeAddress:
    """One address from a node's status, tagged with its scope.

    Attributes:
        address: Address string as reported by the node. Not validated as
            an IP here; classification happens in
            [suitable_type()][poddns.utils.dns.suitable_type].
        type: Address kind. Plain strings are coerced to
            [NodeAddressType][poddns.models.constants.NodeAddressType].

    Raises:
        ValueError: If ``address`` is empty or ``type`` is not a known kind.
    """

    address: str
    type: NodeAddressType

    def __post_init__(self) -> None:
        validate_str_not_empty(self.address, "address")
        object.__setattr__(self, "type", NodeAddressType(self.type))

    @property
    def is_external_ip(self) -> bool:
        return self.type == NodeAddressType.EXTERNAL_IP

    @property
    def is_internal_ip(self) -> bool:
        return self.type == NodeAddressType.INTERNAL_IP


@dataclass(frozen=True, slots=True)
class Node:
    """Immutable node snapshot.

    Attributes:
        name: Node name, the key pods reference via ``node_name``.
        addresses: Advertised addresses in the order the node reports them.
            Lists are converted to tuples.

    Examples:
        ```python
        node = Node(
            name="node-1",
            addresses=(
                NodeAddress("203.0.113.5", NodeAddressType.EXTERNAL_IP),
                NodeAddress("2001:db8::5", NodeAddressType.INTERNAL_IP),
            ),
        )
        ```
    """

    name: str
    addresses: tuple[NodeAddress, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        validate_str_not_empty(self.name, "name")
        addresses = tuple(self.addresses)
        for address in addresses:
            validate_instance(address, NodeAddress, "addresses item")
        object.__setattr__(self, "addresses", addresses)
