"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: One request model for POST /ssml, one response model per endpoint,
and a shared ErrorResponse. All fields carry descriptions for /docs.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- markdown must be non-empty (rejected with 422 otherwise)
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class SSMLRequest(BaseModel):
    """Markdown to convert, with optional language and tracing fields."""

    markdown: str = Field(
        min_length=1,
        description="Markdown source text to convert.",
    )
    language: Optional[str] = Field(
        default=None,
        description="Document language if known (e.g. 'Italian'); passed to the model verbatim.",
    )
    user_id: Optional[str] = Field(
        default=None,
        description="User identifier attached to traces.",
    )
    document_id: Optional[str] = Field(
        default=None,
        description="Document identifier attached to traces.",
    )
    membership_tier: Optional[str] = Field(
        default=None,
        description="Membership tier attached to traces.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "markdown": "# Photosynthesis\n\nPlants turn **light** into energy.",
                "language": "English",
            }
        ]
    }}


class SSMLResponse(BaseModel):
    """The generated SSML document."""

    ssml: str = Field(description="SSML document wrapped in a single <speak> element.")
    chunk_count: int = Field(description="Number of chunks the markdown was split into.")
    characters: int = Field(description="Length of the source markdown in characters.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
