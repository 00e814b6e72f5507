"""Shared constants for the models layer.

Enumerations used by the models, the resolver and the services. Kept in a
leaf module so that ``utils`` and ``services`` can import them without
pulling in any model class.

See Also:
    [Endpoint][poddns.models.endpoint.Endpoint]: Carries a
        [RecordType][poddns.models.constants.RecordType].
    [NodeAddress][poddns.models.node.NodeAddress]: Carries a
        [NodeAddressType][poddns.models.constants.NodeAddressType].
    [resolve_endpoints()][poddns.services.pod.resolver.resolve_endpoints]:
        Reads the [AnnotationKey][poddns.models.constants.AnnotationKey]
        pairs selected by the
        [CompatibilityMode][poddns.models.constants.CompatibilityMode].
"""

from __future__ import annotations

from enum import StrEnum


class RecordType(StrEnum):
    """DNS record family of an endpoint.

    Attributes:
        A: IPv4 address record.
        AAAA: IPv6 address record.
    """

    A = "A"
    AAAA = "AAAA"


class NodeAddressType(StrEnum):
    """Address kinds a node advertises in its status.

    Values match the Kubernetes ``NodeAddressType`` strings. Only the two IP
    kinds can ever become endpoint targets; the DNS and hostname kinds are
    modelled so that converted nodes keep their full address list.

    Attributes:
        INTERNAL_IP: Address reachable inside the cluster network.
        EXTERNAL_IP: Address reachable from outside the cluster.
        HOSTNAME: Node hostname as reported by the kubelet.
        INTERNAL_DNS: DNS name resolvable inside the cluster.
        EXTERNAL_DNS: DNS name resolvable from outside the cluster.
    """

    INTERNAL_IP = "InternalIP"
    EXTERNAL_IP = "ExternalIP"
    HOSTNAME = "Hostname"
    INTERNAL_DNS = "InternalDNS"
    EXTERNAL_DNS = "ExternalDNS"


class CompatibilityMode(StrEnum):
    """Legacy interoperability switch for annotation names.

    A closed set: configuration values outside it are rejected when the
    configuration is loaded, so a typo cannot silently turn legacy support
    off.

    Attributes:
        STANDARD: Only the ``external-dns.alpha.kubernetes.io`` keys.
        KOPS_DNS_CONTROLLER: Also honor the kops ``dns.alpha.kubernetes.io``
            keys, alongside the standard ones.
    """

    STANDARD = ""
    KOPS_DNS_CONTROLLER = "kops-dns-controller"


class AnnotationKey(StrEnum):
    """Pod annotations that declare desired hostnames.

    Values are comma-separated hostname lists. ``*_INTERNAL_HOSTNAME`` keys
    resolve to the pod IP, ``*_HOSTNAME`` keys to the node addresses.

    Attributes:
        INTERNAL_HOSTNAME: Hostnames pointing at the pod IP.
        HOSTNAME: Hostnames pointing at the node's external addresses.
        KOPS_INTERNAL_HOSTNAME: kops dns-controller equivalent of
            ``INTERNAL_HOSTNAME``.
        KOPS_HOSTNAME: kops dns-controller equivalent of ``HOSTNAME``.
    """

    INTERNAL_HOSTNAME = "external-dns.alpha.kubernetes.io/internal-hostname"
    HOSTNAME = "external-dns.alpha.kubernetes.io/hostname"
    KOPS_INTERNAL_HOSTNAME = "dns.alpha.kubernetes.io/internal"
    KOPS_HOSTNAME = "dns.alpha.kubernetes.io/external"


class ServiceName(StrEnum):
    """Canonical service identifiers used in logging, metrics and the CLI.

    Attributes:
        POD: Periodic endpoint resolution from host-network pods
            ([PodSource][poddns.services.pod.PodSource]).
        API: Read-only HTTP surface over the resolved endpoints
            ([Api][poddns.services.api.Api]).
    """

    POD = "pod"
    API = "api"


#: Longest DNS label allowed by RFC 1035.
DNS_LABEL_MAX_LENGTH = 63
