"""
Conduit Backend: Shared Schema Pieces
======================================

What:  Base model with camelCase aliases, the timestamp wire format, and the
       error/health response models.

Wire Conventions:
    - JSON keys are camelCase (`tagList`, `favoritesCount`, `createdAt`);
      Python attributes stay snake_case. Requests accept either spelling.
    - Timestamps are UTC with millisecond precision:
      "2016-02-18T03:22:56.637Z". SQLite returns naive datetimes, which are
      stored as UTC and are read back as such.
"""

from datetime import datetime, timezone
from typing import Annotated, Dict, List

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


Timestamp = Annotated[datetime, PlainSerializer(format_timestamp, return_type=str)]


class CamelModel(BaseModel):
    """Base for every API payload: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Error and Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Error body returned for every 4xx/5xx response.

    Example:
        {"errors": {"email": ["has already been taken"]}}
    """

    errors: Dict[str, List[str]] = Field(description="Field name → messages")


class HealthResponse(BaseModel):
    """
    What:  Health check response for monitoring and orchestration.
    Who:   Returned by GET /health.

    status: "healthy" when the database answers, "unhealthy" otherwise.
    """

    status: str = Field(description="Overall health: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected or error")
    uptime_seconds: float = Field(description="Seconds since the process started")
