"""Pure helpers for hostname annotations and record classification.

Attributes:
    dns: [split_hostname_annotation()][poddns.utils.dns.split_hostname_annotation]
        and [suitable_type()][poddns.utils.dns.suitable_type].

Note:
    The utils layer imports only from [poddns.models][poddns.models], never
    from ``poddns.core`` or ``poddns.services``.
"""

from .dns import split_hostname_annotation, suitable_type


__all__ = [
    "split_hostname_annotation",
    "suitable_type",
]
