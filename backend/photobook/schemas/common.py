"""
Photobook Backend — Shared Pydantic Schemas
=============================================

What:  Base model and envelopes shared by every resource.
Why:   The marketplace frontend speaks camelCase JSON and expects every
       response to carry `success`. Keeping that in one base class means
       resource schemas only declare their own fields.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for API schemas: snake_case in Python, camelCase on the wire.

    populate_by_name lets services build instances with Python names while
    FastAPI still parses and serializes the camelCase aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    """
    Standardized error envelope for all API errors.

    Example:
        {
            "success": false,
            "error": "submission with ID '...' was not found",
            "code": "not_found",
            "details": {"resource": "submission"},
            "requestId": "a1b2c3d4"
        }
    """
    success: bool = False
    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Machine-readable error kind")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
