"""Error envelope returned by every failing API call."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """{error, required?, current?, validTypes?}; used for OpenAPI documentation of error responses."""

    error: str
    required: Any | None = None
    current: Any | None = None
    valid_types: list[str] | None = Field(default=None, serialization_alias="validTypes")
