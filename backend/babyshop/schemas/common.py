"""
BabyShop Backend — Shared Response Schemas
===========================================

What:  Envelope pieces reused by every resource: pagination block, error
       body, health report.
Why:   The frontend reads `success`, `data` and `pagination` the same way
       on every list endpoint; defining them once keeps that contract stable.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ApiModel(BaseModel):
    """
    Base for models whose JSON keys differ from their Python names.

    Rows come back from SQL keyed by column alias (`_id`, `isActive`, ...);
    `populate_by_name` lets services also build them with snake_case names.
    FastAPI serializes by alias, so responses keep the original keys.
    """

    model_config = {"populate_by_name": True}


class Pagination(BaseModel):
    page: int = Field(description="Current page, starting at 1")
    limit: int = Field(description="Items per page")
    total: int = Field(description="Rows matching the filters")
    pages: int = Field(description="ceil(total / limit)")


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """
    What:  Body of every error response produced by the global handlers.
    Why:   Clients branch on `error` (machine code) and show `message`.
           `request_id` matches the X-Request-ID header for support lookups.
    """
    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable explanation")
    details: Optional[Dict[str, Any]] = Field(default=None)
    request_id: Optional[str] = Field(default=None)


class HealthResponse(BaseModel):
    status: str = Field(description="healthy, degraded or unhealthy")
    message: str = Field(default="API BabyShop is running")
    version: str
    database: str = Field(description="connected or disconnected")
    vision: str = Field(description="available, disabled, circuit_open or unavailable")
    uptime_seconds: float
