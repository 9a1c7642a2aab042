"""
Unit tests for the aggregated health check.
"""
import asyncio

from aichat.core.health import HealthStatus
from aichat.services.health_service import HealthService


def _run(service):
    return asyncio.run(service.check_all())


class TestHealthService:
    def test_all_healthy(self):
        service = HealthService({
            "postgres": HealthStatus.ok,
            "redis": HealthStatus.ok,
        })

        status, body = _run(service)

        assert status == 200
        assert body["postgres"]["healthy"]
        assert body["redis"]["message"] == "Connected"
        assert "timestamp" in body

    def test_one_unhealthy(self):
        service = HealthService({
            "postgres": HealthStatus.ok,
            "redis": lambda: HealthStatus.failed("Connection refused"),
        })

        status, body = _run(service)

        assert status == 503
        assert body["redis"] == {
            "healthy": False,
            "message": "Connection refused",
            "timestamp": body["redis"]["timestamp"],
        }

    def test_check_that_raises(self):
        def broken():
            raise RuntimeError("client could not be built")

        status, body = _run(HealthService({"supabase": broken, "postgres": HealthStatus.ok}))

        assert status == 503
        assert body["supabase"] == {"healthy": False, "message": "Health check failed"}
        assert body["postgres"]["healthy"]

    def test_aggregation_failure(self):
        class BrokenService(HealthService):
            @property
            def checks(self):
                raise RuntimeError("boom")

        status, body = _run(BrokenService())

        assert status == 500
        assert body["error"] == "Health check failed"
        assert body["message"] == "boom"
