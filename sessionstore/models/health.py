from typing import Any, Dict, Literal

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    status: Literal["healthy", "unhealthy"]
    latency_ms: float = Field(..., description="Round-trip time of the probe", ge=0)
    details: Dict[str, Any] = Field(default_factory=dict)


__all__ = ["HealthStatus"]
