"""
VIP Travel API - Shared Schemas
================================

Error envelope used by every exception handler, and the health report.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error body.

    Example:
        {
            "error": "validation_error",
            "message": "Missing required fields: title",
            "details": {"field": "title", "missing": ["title"]},
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    asset_store: str = Field(description="Asset store state: ready, initializing, uninitialized")
    uptime_seconds: float = Field(description="Seconds since service started")
