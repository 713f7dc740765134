"""
Response models for the gateway's outer surface.

Every command answers with the same JSON envelope:
``{"success": true, "data": ...}`` or ``{"success": false, "error": ...}``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

__all__ = ["Envelope", "HealthStatus"]


class Envelope(BaseModel):
    """JSON response envelope."""

    success: bool = Field(description="True if the operation succeeded")
    data: Any | None = Field(default=None, description="Payload on success")
    error: str | None = Field(default=None, description="Error message on failure")

    @classmethod
    def ok(cls, data: Any) -> Envelope:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, message: str) -> Envelope:
        return cls(success=False, error=message)

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class HealthStatus(BaseModel):
    """Liveness report."""

    status: str = "ok"
    time: datetime
    token_cached: bool = False
    store: str = "memory"
    store_ok: bool = True
    logins: int = 0
    latency_ms: dict[str, float] = Field(default_factory=dict)
