"""Health-related Pydantic schemas."""

from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"
    READY = "ready"
    NOT_READY = "not_ready"


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: HealthStatus = Field(..., description="Service status")
    service: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    status: HealthStatus
    service: str
    checks: Dict[str, str]
