import pytest
from django.core.cache import cache

pytestmark = pytest.mark.integration


class TestHealthCheck:
    def test_healthy_without_default_status(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["services"]["database"]["status"] == "up"
        assert body["services"]["cache"]["status"] == "up"
        assert body["services"]["order_statuses"] == {
            "status": "degraded",
            "default": None,
        }

    def test_reports_default_status(self, client, statuses):
        body = client.get("/health").json()
        assert body["services"]["order_statuses"] == {
            "status": "up",
            "default": "PENDING",
        }

    def test_response_times_are_reported(self, client):
        services = client.get("/health").json()["services"]
        assert services["database"]["response_time_ms"] >= 0
        assert services["cache"]["response_time_ms"] >= 0

    def test_cache_failure_is_unhealthy(self, client, monkeypatch):
        def broken_set(*args, **kwargs):
            raise ConnectionError("redis unreachable")

        monkeypatch.setattr(cache, "set", broken_set)

        response = client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["services"]["cache"] == {"status": "down"}
        assert body["services"]["database"]["status"] == "up"

    def test_no_authentication_required(self, client):
        assert client.get("/health").status_code == 200
