"""
Health Service - Probe every backing service concurrently.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from aichat.core.config import get_settings
from aichat.core.health import HealthStatus
from aichat.core.logging_config import get_logger

logger = get_logger(__name__)

HealthCheck = Callable[[], HealthStatus]

FAILED_CHECK = {"healthy": False, "message": "Health check failed"}


def default_checks() -> Dict[str, HealthCheck]:
    """
    Checks for the configured backends.

    Clients are resolved inside each check so a backend that cannot even be
    constructed reports as failed instead of breaking the aggregate.
    """
    from aichat.auth.supabase_client import get_supabase_auth
    from aichat.cache.redis_cache import get_cache
    from aichat.database.connection import get_database
    from aichat.database.mongodb import get_mongo_store
    from aichat.database.vector import get_vector_store

    checks: Dict[str, HealthCheck] = {
        "supabase": lambda: get_supabase_auth().check_health(),
        "postgres": lambda: get_database().check_health(),
    }
    if get_settings().mongodb_configured:
        checks["mongodb"] = lambda: get_mongo_store().check_health()
    checks["vector"] = lambda: get_vector_store().check_health()
    checks["redis"] = lambda: get_cache().check_health()
    return checks


class HealthService:
    def __init__(self, checks: Optional[Dict[str, HealthCheck]] = None):
        self._checks = checks

    @property
    def checks(self) -> Dict[str, HealthCheck]:
        if self._checks is None:
            self._checks = default_checks()
        return self._checks

    async def check_all(self) -> Tuple[int, Dict[str, Any]]:
        """
        Run every check in parallel.

        Returns:
            (HTTP status, body): 200 when all checks pass, 503 when any
            fails, 500 when the aggregation itself breaks
        """
        try:
            names = list(self.checks)
            results = await asyncio.gather(
                *(asyncio.to_thread(self.checks[name]) for name in names),
                return_exceptions=True,
            )

            body: Dict[str, Any] = {}
            for name, result in zip(names, results):
                if isinstance(result, Exception):
                    logger.error(f"Health check '{name}' raised: {result}")
                    body[name] = dict(FAILED_CHECK)
                else:
                    body[name] = result.to_dict()

            all_healthy = all(body[name]["healthy"] for name in names)
            body["timestamp"] = datetime.now(timezone.utc).isoformat()

            if not all_healthy:
                failing = [name for name in names if not body[name]["healthy"]]
                logger.warning(f"Unhealthy services: {', '.join(failing)}")
            return (200 if all_healthy else 503), body

        except Exception as e:
            logger.exception(f"Health aggregation failed: {e}")
            return 500, {
                "error": "Health check failed",
                "message": str(e) or "Unknown error",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }


_health_service: Optional[HealthService] = None


def get_health_service() -> HealthService:
    global _health_service
    if _health_service is None:
        _health_service = HealthService()
    return _health_service
