"""
Read interfaces over cluster state and their immutable implementation.

The resolver never talks to the Kubernetes API. It receives two narrow
collaborators:

* [PodLister][poddns.core.snapshot.PodLister]: pods by namespace and
  optional label selector.
* [NodeGetter][poddns.core.snapshot.NodeGetter]: a node by name, with
  ``None`` for "not found".

[Snapshot][poddns.core.snapshot.Snapshot] implements both over one
point-in-time listing. The [ClusterCache][poddns.core.cache.ClusterCache]
replaces its snapshot in a single assignment, so a reader holding a
snapshot never observes a half-applied refresh.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from poddns.models import Node, Pod


@runtime_checkable
class PodLister(Protocol):
    """Lists pods; ``namespace == ""`` means every namespace in scope."""

    def list_pods(
        self, namespace: str, selector: Mapping[str, str] | None = None
    ) -> Sequence[Pod]: ...


@runtime_checkable
class NodeGetter(Protocol):
    """Looks up a node by name without blocking; ``None`` when unknown."""

    def get_node(self, name: str) -> Node | None: ...


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Point-in-time view of pods and nodes.

    Attributes:
        pods: Pods in listing order.
        nodes: Nodes keyed by name (read-only).
        taken_at: Unix timestamp of the listing.

    Examples:
        ```python
        snapshot = Snapshot.build(pods=[pod], nodes=[node])
        snapshot.list_pods("kube-system")
        snapshot.get_node("node-1")
        ```
    """

    pods: tuple[Pod, ...] = ()
    nodes: Mapping[str, Node] = field(default_factory=dict, hash=False)
    taken_at: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pods", tuple(self.pods))
        for pod in self.pods:
            if not isinstance(pod, Pod):
                raise TypeError(f"pods must contain Pod, got {type(pod).__name__}")
        for name, node in self.nodes.items():
            if not isinstance(node, Node):
                raise TypeError(f"nodes must contain Node, got {type(node).__name__}")
            if name != node.name:
                raise ValueError(f"node key {name!r} does not match node name {node.name!r}")
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))

    @classmethod
    def build(
        cls,
        pods: Iterable[Pod] = (),
        nodes: Iterable[Node] = (),
        taken_at: float | None = None,
    ) -> Snapshot:
        """Create a snapshot from plain iterables, indexing nodes by name.

        A later node with a duplicate name replaces the earlier one.
        """
        by_name = {node.name: node for node in nodes}
        if taken_at is None:
            return cls(pods=tuple(pods), nodes=by_name)
        return cls(pods=tuple(pods), nodes=by_name, taken_at=taken_at)

    def list_pods(
        self, namespace: str, selector: Mapping[str, str] | None = None
    ) -> list[Pod]:
        return [
            pod
            for pod in self.pods
            if (not namespace or pod.namespace == namespace) and pod.matches(selector)
        ]

    def get_node(self, name: str) -> Node | None:
        return self.nodes.get(name)

    @property
    def age(self) -> float:
        """Seconds elapsed since the listing was taken."""
        return max(0.0, time.time() - self.taken_at)
