"""
Common response models.

Typed JSON bodies returned by the generation and licensing endpoints.

Dependencies: pydantic
System role: Common API response structures
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class StepsResponse(BaseModel):
    """Successful generation with at least one step."""

    type: Literal["steps"] = "steps"
    data: list[dict[str, Any]]


class MessageResponse(BaseModel):
    """Model declined to draw; data explains why."""

    type: Literal["message"] = "message"
    data: str


class ErrorResponse(BaseModel):
    """Uniform error payload."""

    type: Literal["error"] = "error"
    message: str = Field(description="Public error message")


class LicenseValidationRequest(BaseModel):
    """Body of POST /license/validate."""

    model_config = ConfigDict(populate_by_name=True)

    license_key: str | None = Field(default=None, alias="licenseKey")


class LicenseValidationResponse(BaseModel):
    valid: bool
