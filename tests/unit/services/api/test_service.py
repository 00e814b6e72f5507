"""
Unit tests for services.api.service module.

Tests:
- ApiConfig defaults and route prefix normalization
- Health route
- Endpoint listing, filtering and single-name lookup
- Error mapping (400, 404, 503)
- Request accounting and run() cycle stats
"""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from poddns.core.cache import ClusterCache
from poddns.services.api import Api, ApiConfig
from poddns.services.api.service import RequestStats
from poddns.services.common.configs import ResolveConfig


@pytest.fixture
def api(synced_cache: ClusterCache) -> Api:
    return Api(cache=synced_cache)


@pytest.fixture
def client(api: Api) -> TestClient:
    return TestClient(api._build_app())


class TestApiConfig:
    def test_defaults(self) -> None:
        config = ApiConfig()
        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.route_prefix == "/v1"
        assert config.cors_origins == []

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("v2", "/v2"), ("/v2/", "/v2"), ("/api/v1", "/api/v1")],
    )
    def test_route_prefix_normalized(self, value: str, expected: str) -> None:
        assert ApiConfig(route_prefix=value).route_prefix == expected

    def test_route_prefix_only_slashes_rejected(self) -> None:
        with pytest.raises(ValidationError, match="route_prefix"):
            ApiConfig(route_prefix="//")

    def test_port_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ApiConfig(port=0)


class TestHealth:
    def test_synced(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "synced": True}

    def test_not_synced_still_ok(self, unsynced_cache: ClusterCache) -> None:
        client = TestClient(Api(cache=unsynced_cache)._build_app())
        assert client.get("/health").json() == {"status": "ok", "synced": False}


class TestListEndpoints:
    def test_all_sorted(self, client: TestClient) -> None:
        response = client.get("/v1/endpoints")
        assert response.status_code == 200
        body = response.json()
        assert body["data"] == [
            {"dns_name": "internal.example.com", "record_type": "A", "targets": ["192.0.2.10"]},
            {"dns_name": "svc.example.com", "record_type": "A", "targets": ["203.0.113.5"]},
            {"dns_name": "svc.example.com", "record_type": "AAAA", "targets": ["2001:db8::5"]},
        ]
        assert body["meta"] == {"total": 3, "namespace": "", "compatibility": ""}

    def test_filter_record_type_case_insensitive(self, client: TestClient) -> None:
        body = client.get("/v1/endpoints", params={"record_type": "aaaa"}).json()
        assert [ep["record_type"] for ep in body["data"]] == ["AAAA"]
        assert body["meta"]["total"] == 1

    def test_filter_dns_name_with_trailing_dot(self, client: TestClient) -> None:
        body = client.get("/v1/endpoints", params={"dns_name": "svc.example.com."}).json()
        assert {ep["record_type"] for ep in body["data"]} == {"A", "AAAA"}

    def test_filter_no_match(self, client: TestClient) -> None:
        body = client.get("/v1/endpoints", params={"dns_name": "nope.example.com"}).json()
        assert body["data"] == []
        assert body["meta"]["total"] == 0

    def test_invalid_record_type(self, client: TestClient) -> None:
        response = client.get("/v1/endpoints", params={"record_type": "CNAME"})
        assert response.status_code == 400
        assert "invalid record_type" in response.json()["error"]

    def test_kops_mode(self, synced_cache: ClusterCache) -> None:
        config = ApiConfig(resolve=ResolveConfig(compatibility="kops-dns-controller"))
        client = TestClient(Api(cache=synced_cache, config=config)._build_app())
        body = client.get("/v1/endpoints").json()
        assert "legacy.example.com" in {ep["dns_name"] for ep in body["data"]}
        assert body["meta"]["compatibility"] == "kops-dns-controller"

    def test_namespace_scoping(self, synced_cache: ClusterCache) -> None:
        config = ApiConfig(resolve=ResolveConfig(namespace="default"))
        client = TestClient(Api(cache=synced_cache, config=config)._build_app())
        body = client.get("/v1/endpoints").json()
        assert body["data"] == []
        assert body["meta"]["namespace"] == "default"

    def test_unsynced_cache_answers_503(self, unsynced_cache: ClusterCache) -> None:
        client = TestClient(Api(cache=unsynced_cache)._build_app())
        response = client.get("/v1/endpoints")
        assert response.status_code == 503
        assert "error" in response.json()

    def test_custom_prefix(self, synced_cache: ClusterCache) -> None:
        config = ApiConfig(route_prefix="dns")
        client = TestClient(Api(cache=synced_cache, config=config)._build_app())
        assert client.get("/dns/endpoints").status_code == 200
        assert client.get("/v1/endpoints").status_code == 404


class TestGetEndpoint:
    def test_found(self, client: TestClient) -> None:
        response = client.get("/v1/endpoints/svc.example.com")
        assert response.status_code == 200
        assert [ep["record_type"] for ep in response.json()["data"]] == ["A", "AAAA"]

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/v1/endpoints/web.example.com")
        assert response.status_code == 404
        assert response.json() == {"error": "endpoint not found: web.example.com"}

    def test_unsynced_cache_answers_503(self, unsynced_cache: ClusterCache) -> None:
        client = TestClient(Api(cache=unsynced_cache)._build_app())
        assert client.get("/v1/endpoints/svc.example.com").status_code == 503


class TestRequestStats:
    def test_record_counts_errors(self) -> None:
        stats = RequestStats()
        assert stats.record(200) is False
        assert stats.record(404) is True
        assert stats.record(503) is True
        assert (stats.total, stats.failed) == (3, 2)

    def test_drain_resets(self) -> None:
        stats = RequestStats(total=4, failed=1)
        assert stats.drain() == (4, 1)
        assert stats.drain() == (0, 0)


class TestRequestAccounting:
    async def test_run_reports_and_resets(self, api: Api, client: TestClient) -> None:
        client.get("/health")
        client.get("/v1/endpoints")
        client.get("/v1/endpoints/missing.example.com")

        with patch.object(api._logger, "info") as info:
            await api.run()

        fields = info.call_args[1]
        assert info.call_args[0][0] == "cycle_stats"
        assert fields["requests_total"] == 3
        assert fields["requests_failed"] == 1
        assert fields["cache_synced"] is True
        assert api._stats.total == 0
        assert api._stats.failed == 0

    def test_failed_requests_logged_as_warning(self, api: Api, client: TestClient) -> None:
        with patch.object(api._logger, "warning") as warning:
            client.get("/v1/endpoints", params={"record_type": "MX"})
        assert warning.call_args[0][0] == "request_failed"
        assert warning.call_args[1]["status"] == 400

    async def test_counters_incremented(self, api: Api) -> None:
        api._stats.total = 5
        api._stats.failed = 2
        with patch.object(api, "inc_counter") as inc:
            await api.run()
        inc.assert_any_call("requests_total", 5)
        inc.assert_any_call("requests_failed", 2)

    async def test_run_raises_when_server_died(self, api: Api) -> None:
        async def crash() -> None:
            raise OSError("address in use")

        api._server_task = asyncio.create_task(crash())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        with pytest.raises(RuntimeError, match="stopped unexpectedly"):
            await api.run()


class TestLifecycle:
    async def test_enter_starts_and_exit_cancels_server(self, api: Api) -> None:
        started = asyncio.Event()

        async def fake_server(app: object) -> None:
            started.set()
            await asyncio.Event().wait()

        with patch.object(api, "_run_server", fake_server):
            async with api:
                await asyncio.wait_for(started.wait(), timeout=1.0)
                assert api._server_task is not None
                assert api.is_running
        assert api._server_task is None
