"""
Base response schemas for the API envelope.

Every success is ``{"status": "success", "data": ..., "message"?}`` and
every failure is ``{"status": "error", "message": ..., "code": ..., "details"?}``.
"""

from typing import Any, Dict, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class SuccessEnvelope(BaseModel, Generic[T]):
    """Standard success envelope wrapping the endpoint payload."""

    status: Literal["success"] = "success"
    data: T
    message: Optional[str] = Field(default=None, description="Human-readable message")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"status": "success", "data": {}, "message": "Class scheduled"}
        }
    )


class ErrorEnvelope(BaseModel):
    """Standard error envelope rendered by the exception handlers."""

    status: Literal["error"] = "error"
    message: str = Field(description="Human-readable error message")
    code: str = Field(description="Stable error code for programmatic handling")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional context")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "error",
                "message": "Time conflict: overlaps the session 01H... scheduled 09:00-10:00 on 2024-01-10",
                "code": "SCHEDULE_CONFLICT",
                "details": {"conflicts": []},
            }
        }
    )
