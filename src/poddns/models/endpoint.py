"""
Desired DNS record derived from cluster state.

An [Endpoint][poddns.models.endpoint.Endpoint] is one hostname, one record
family and every target address collected for that pair during a
resolution pass. [EndpointKey][poddns.models.endpoint.EndpointKey] is the
aggregation key the resolver groups targets by.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from ._validation import validate_str_not_empty
from .constants import DNS_LABEL_MAX_LENGTH, RecordType


logger = logging.getLogger(__name__)


class EndpointKey(NamedTuple):
    """Aggregation key: one endpoint is emitted per distinct key."""

    dns_name: str
    record_type: RecordType


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Immutable DNS endpoint.

    Trailing dots are stripped from ``dns_name`` and from every target with
    [canonical_dns_name()][poddns.models.endpoint.canonical_dns_name], so
    ``"a.example.com."`` and ``"a.example.com"`` describe the same record. Labels longer than 63 characters are logged at error
    level but not rejected; providers validate names before use.

    Attributes:
        dns_name: Fully qualified hostname without trailing dots.
        record_type: ``A`` or ``AAAA``. Plain strings are coerced.
        targets: One or more target addresses, in discovery order.
            Duplicates are kept.

    Raises:
        ValueError: If the name is empty, no target is given, a target is
            empty, or the record type is unknown.

    Examples:
        ```python
        ep = Endpoint("svc.example.com.", RecordType.A, ["203.0.113.5"])
        ep.dns_name    # 'svc.example.com'
        ep.targets     # ('203.0.113.5',)
        ep.key         # EndpointKey(dns_name='svc.example.com', record_type=<RecordType.A: 'A'>)
        ```
    """

    dns_name: str
    record_type: RecordType
    targets: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        validate_str_not_empty(self.dns_name, "dns_name")
        dns_name = canonical_dns_name(self.dns_name)
        if not dns_name:
            raise ValueError("dns_name must not be empty")

        targets = tuple(self.targets)
        if not targets:
            raise ValueError("targets must contain at least one address")
        for target in targets:
            validate_str_not_empty(target, "target")

        for label in dns_name.split("."):
            if len(label) > DNS_LABEL_MAX_LENGTH:
                logger.error(
                    "label %s in %s is longer than %d characters",
                    label,
                    dns_name,
                    DNS_LABEL_MAX_LENGTH,
                )

        object.__setattr__(self, "dns_name", dns_name)
        object.__setattr__(self, "record_type", RecordType(self.record_type))
        object.__setattr__(self, "targets", tuple(canonical_dns_name(t) for t in targets))

    @property
    def key(self) -> EndpointKey:
        """The ``(dns_name, record_type)`` pair identifying this endpoint."""
        return EndpointKey(self.dns_name, self.record_type)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "dns_name": self.dns_name,
            "record_type": str(self.record_type),
            "targets": list(self.targets),
        }

    def __str__(self) -> str:
        return f"{self.dns_name} 0 IN {self.record_type} {';'.join(self.targets)}"


def canonical_dns_name(value: str) -> str:
    """Return *value* without trailing dots.

    Idempotent, so a name that is already canonical is stored unchanged;
    ``"."`` and ``".."`` become ``""``.
    """
    return value.rstrip(".")
