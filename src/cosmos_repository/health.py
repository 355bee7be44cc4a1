"""Health primitives reported by the repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class HealthStatus:
    """Represents an infrastructure health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        payload: dict[str, Any] = {
            "healthy": self.healthy,
            "latency_ms": max(0.0, float(self.latency_ms)),
        }
        if self.message is not None:
            payload["message"] = self.message
        if self.details:
            payload["details"] = dict(self.details)
        return payload
