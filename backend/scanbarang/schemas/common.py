"""
Scan Barang Backend — Shared Response Schemas
===============================================

What:  Response shapes used by more than one route group.
Why:   Every error leaves the API in the same format, produced by the
       exception handlers in main.py.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "Event not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Human-readable error description")
    details: Optional[str] = Field(default=None, description="Raw detail from the failing collaborator")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str


class SuccessResponse(BaseModel):
    """Body of the completion endpoints, which the client reads `success` from."""
    success: bool
    message: str


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for container and load balancer probes.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
