"""DNS helpers for hostname annotations and record classification.

Pure functions, no network access. The resolver calls
[split_hostname_annotation()][poddns.utils.dns.split_hostname_annotation] on
every annotation value it honors and
[suitable_type()][poddns.utils.dns.suitable_type] on every candidate target.

Note:
    Classification never rejects a target. Strings that are not IP literals
    are typed as ``A`` and passed through; whoever publishes the records is
    responsible for validating them.
"""

from __future__ import annotations

from ipaddress import IPv6Address, ip_address

from poddns.models.constants import RecordType


def split_hostname_annotation(value: str) -> list[str]:
    """Split a comma-separated hostname annotation into hostnames.

    Each segment is stripped of surrounding whitespace; empty and
    whitespace-only segments are dropped, so the result never contains an
    empty name.

    Args:
        value: Raw annotation value, e.g. ``"a.example.com, b.example.com"``.

    Returns:
        Hostnames in annotation order. Duplicates are kept.

    Examples:
        ```python
        split_hostname_annotation("a.example.com, b.example.com")
        # ['a.example.com', 'b.example.com']
        split_hostname_annotation(" , ,a.example.com,")
        # ['a.example.com']
        ```
    """
    return [segment.strip() for segment in value.split(",") if segment.strip()]


def suitable_type(address: str) -> RecordType:
    """Return the record type an address should be published under.

    ``AAAA`` if *address* parses as an IPv6 literal, ``A`` for everything
    else, including strings that are not IP addresses at all.

    Examples:
        ```python
        suitable_type("10.0.0.5")      # RecordType.A
        suitable_type("2001:db8::1")   # RecordType.AAAA
        suitable_type("not-an-ip")     # RecordType.A
        ```
    """
    try:
        parsed = ip_address(address)
    except ValueError:
        return RecordType.A
    return RecordType.AAAA if isinstance(parsed, IPv6Address) else RecordType.A
