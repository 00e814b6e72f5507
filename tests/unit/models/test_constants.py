"""Unit tests for models.constants module."""

from __future__ import annotations

import pytest

from poddns.models import (
    DNS_LABEL_MAX_LENGTH,
    AnnotationKey,
    CompatibilityMode,
    NodeAddressType,
    RecordType,
    ServiceName,
)


class TestRecordType:
    def test_values(self) -> None:
        assert [str(t) for t in RecordType] == ["A", "AAAA"]


class TestCompatibilityMode:
    def test_standard_is_empty_string(self) -> None:
        assert CompatibilityMode("") is CompatibilityMode.STANDARD

    def test_kops(self) -> None:
        assert CompatibilityMode("kops-dns-controller") is CompatibilityMode.KOPS_DNS_CONTROLLER

    def test_closed_set(self) -> None:
        with pytest.raises(ValueError):
            CompatibilityMode("kops")


class TestAnnotationKey:
    def test_keys(self) -> None:
        assert AnnotationKey.INTERNAL_HOSTNAME == "external-dns.alpha.kubernetes.io/internal-hostname"
        assert AnnotationKey.HOSTNAME == "external-dns.alpha.kubernetes.io/hostname"
        assert AnnotationKey.KOPS_INTERNAL_HOSTNAME == "dns.alpha.kubernetes.io/internal"
        assert AnnotationKey.KOPS_HOSTNAME == "dns.alpha.kubernetes.io/external"

    def test_usable_as_plain_dict_key(self) -> None:
        annotations = {"external-dns.alpha.kubernetes.io/hostname": "a.example.com"}
        assert annotations[AnnotationKey.HOSTNAME] == "a.example.com"


class TestMisc:
    def test_node_address_types_match_kubernetes(self) -> None:
        assert {str(t) for t in NodeAddressType} == {
            "InternalIP",
            "ExternalIP",
            "Hostname",
            "InternalDNS",
            "ExternalDNS",
        }

    def test_service_names(self) -> None:
        assert ServiceName.POD == "pod"
        assert ServiceName.API == "api"

    def test_label_limit(self) -> None:
        assert DNS_LABEL_MAX_LENGTH == 63
