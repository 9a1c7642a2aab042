"""
Health status shared by every backing-service check.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class HealthStatus:
    """Result of probing one backing service."""
    healthy: bool
    message: str
    timestamp: str = field(default_factory=_timestamp)

    @classmethod
    def ok(cls, message: str = "Connected") -> "HealthStatus":
        return cls(healthy=True, message=message)

    @classmethod
    def failed(cls, error: Any = None) -> "HealthStatus":
        if isinstance(error, Exception) and str(error):
            message = str(error)
        elif isinstance(error, str) and error:
            message = error
        else:
            message = "Connection failed"
        return cls(healthy=False, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "healthy": self.healthy,
            "message": self.message,
            "timestamp": self.timestamp,
        }
