"""
Unit tests for core.kubernetes module.

Tests:
- V1Pod / V1Node conversion
- Credential loading order (in-cluster, kubeconfig fallback)
- Namespace-scoped vs cluster-wide listing
- API and transport errors surfaced as ClusterError
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client import (
    V1Node,
    V1NodeAddress,
    V1NodeList,
    V1NodeStatus,
    V1ObjectMeta,
    V1Pod,
    V1PodList,
    V1PodSpec,
    V1PodStatus,
)
from kubernetes.client.exceptions import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import MaxRetryError

from poddns.core.exceptions import ClusterError
from poddns.core.kubernetes import KubernetesFetcher, node_from_k8s, pod_from_k8s
from poddns.models import NodeAddressType


def _v1_pod(
    name: str = "ingress-0",
    namespace: str = "kube-system",
    *,
    host_network: bool | None = True,
    annotations: dict[str, str] | None = None,
    pod_ip: str | None = "192.0.2.10",
    node_name: str | None = "node-1",
) -> V1Pod:
    return V1Pod(
        metadata=V1ObjectMeta(name=name, namespace=namespace, annotations=annotations),
        spec=V1PodSpec(containers=[], host_network=host_network, node_name=node_name),
        status=V1PodStatus(pod_ip=pod_ip),
    )


def _v1_node(name: str = "node-1", addresses: list[tuple[str, str]] | None = None) -> V1Node:
    return V1Node(
        metadata=V1ObjectMeta(name=name),
        status=V1NodeStatus(
            addresses=[V1NodeAddress(address=a, type=t) for a, t in (addresses or [])]
        ),
    )


class TestPodFromK8s:
    def test_full(self) -> None:
        pod = pod_from_k8s(_v1_pod(annotations={"a": "b"}))
        assert pod.name == "ingress-0"
        assert pod.namespace == "kube-system"
        assert pod.host_network is True
        assert dict(pod.annotations) == {"a": "b"}
        assert pod.pod_ip == "192.0.2.10"
        assert pod.node_name == "node-1"

    def test_missing_optional_fields(self) -> None:
        pod = pod_from_k8s(_v1_pod(host_network=None, pod_ip=None, node_name=None))
        assert pod.host_network is False
        assert dict(pod.annotations) == {}
        assert pod.pod_ip == ""
        assert pod.node_name == ""

    def test_missing_spec_and_status(self) -> None:
        raw = V1Pod(metadata=V1ObjectMeta(name="p", namespace="ns", labels={"app": "x"}))
        pod = pod_from_k8s(raw)
        assert pod.host_network is False
        assert dict(pod.labels) == {"app": "x"}


class TestNodeFromK8s:
    def test_addresses_in_order(self) -> None:
        node = node_from_k8s(
            _v1_node(addresses=[("2001:db8::5", "InternalIP"), ("203.0.113.5", "ExternalIP")])
        )
        assert [(a.address, a.type) for a in node.addresses] == [
            ("2001:db8::5", NodeAddressType.INTERNAL_IP),
            ("203.0.113.5", NodeAddressType.EXTERNAL_IP),
        ]

    def test_unknown_type_skipped(self) -> None:
        node = node_from_k8s(
            _v1_node(addresses=[("x", "SomethingNew"), ("203.0.113.5", "ExternalIP")])
        )
        assert [a.address for a in node.addresses] == ["203.0.113.5"]

    def test_no_status(self) -> None:
        node = node_from_k8s(V1Node(metadata=V1ObjectMeta(name="node-1")))
        assert node.addresses == ()


@pytest.fixture
def mock_api() -> MagicMock:
    api = MagicMock()
    api.list_namespaced_pod.return_value = V1PodList(items=[_v1_pod()])
    api.list_pod_for_all_namespaces.return_value = V1PodList(
        items=[_v1_pod(), _v1_pod("web-0", "default", host_network=False)]
    )
    api.list_node.return_value = V1NodeList(
        items=[_v1_node(addresses=[("203.0.113.5", "ExternalIP")])]
    )
    return api


class TestFetch:
    def test_all_namespaces(self, mock_api: MagicMock) -> None:
        fetcher = KubernetesFetcher()
        fetcher._api = mock_api

        snapshot = fetcher("")

        mock_api.list_pod_for_all_namespaces.assert_called_once()
        mock_api.list_namespaced_pod.assert_not_called()
        assert [p.name for p in snapshot.pods] == ["ingress-0", "web-0"]
        assert snapshot.get_node("node-1") is not None

    def test_single_namespace(self, mock_api: MagicMock) -> None:
        fetcher = KubernetesFetcher(request_timeout=5.0)
        fetcher._api = mock_api

        snapshot = fetcher("kube-system")

        mock_api.list_namespaced_pod.assert_called_once_with("kube-system", _request_timeout=5.0)
        assert [p.name for p in snapshot.pods] == ["ingress-0"]

    def test_invalid_items_skipped(self, mock_api: MagicMock) -> None:
        mock_api.list_pod_for_all_namespaces.return_value = V1PodList(
            items=[_v1_pod(), V1Pod(metadata=V1ObjectMeta(name=None, namespace="ns"))]
        )
        fetcher = KubernetesFetcher()
        fetcher._api = mock_api

        assert len(fetcher("").pods) == 1

    def test_api_exception(self, mock_api: MagicMock) -> None:
        mock_api.list_node.side_effect = ApiException(status=403, reason="Forbidden")
        fetcher = KubernetesFetcher()
        fetcher._api = mock_api

        with pytest.raises(ClusterError, match="403"):
            fetcher("")

    def test_transport_error(self, mock_api: MagicMock) -> None:
        mock_api.list_pod_for_all_namespaces.side_effect = MaxRetryError(None, "/api/v1/pods")
        fetcher = KubernetesFetcher()
        fetcher._api = mock_api

        with pytest.raises(ClusterError, match="unreachable"):
            fetcher("")


class TestCredentials:
    def test_in_cluster_first(self) -> None:
        with (
            patch("poddns.core.kubernetes.kube_config.load_incluster_config") as incluster,
            patch("poddns.core.kubernetes.kube_config.load_kube_config") as kubeconfig,
        ):
            KubernetesFetcher()._load_configuration()
        incluster.assert_called_once()
        kubeconfig.assert_not_called()

    def test_falls_back_to_kubeconfig(self) -> None:
        with (
            patch(
                "poddns.core.kubernetes.kube_config.load_incluster_config",
                side_effect=ConfigException("not in cluster"),
            ),
            patch("poddns.core.kubernetes.kube_config.load_kube_config") as kubeconfig,
        ):
            KubernetesFetcher(kubeconfig="/tmp/kc", context="dev")._load_configuration()
        assert kubeconfig.call_args.kwargs["config_file"] == "/tmp/kc"
        assert kubeconfig.call_args.kwargs["context"] == "dev"

    def test_forced_in_cluster_does_not_fall_back(self) -> None:
        with (
            patch(
                "poddns.core.kubernetes.kube_config.load_incluster_config",
                side_effect=ConfigException("not in cluster"),
            ),
            patch("poddns.core.kubernetes.kube_config.load_kube_config") as kubeconfig,
            pytest.raises(ClusterError, match="In-cluster"),
        ):
            KubernetesFetcher(in_cluster=True)._load_configuration()
        kubeconfig.assert_not_called()

    def test_forced_kubeconfig_skips_in_cluster(self) -> None:
        with (
            patch("poddns.core.kubernetes.kube_config.load_incluster_config") as incluster,
            patch("poddns.core.kubernetes.kube_config.load_kube_config"),
        ):
            KubernetesFetcher(in_cluster=False)._load_configuration()
        incluster.assert_not_called()

    def test_no_credentials(self) -> None:
        with (
            patch(
                "poddns.core.kubernetes.kube_config.load_incluster_config",
                side_effect=ConfigException("not in cluster"),
            ),
            patch(
                "poddns.core.kubernetes.kube_config.load_kube_config",
                side_effect=ConfigException("no kubeconfig"),
            ),
            pytest.raises(ClusterError, match="credentials"),
        ):
            KubernetesFetcher()._load_configuration()
