from __future__ import annotations

from typing import Any

from pydantic import Field

from ...core.models import APIModel

__all__ = ["ValidationResult"]


class ValidationResult(APIModel):
    correct: bool
    has_attempt: bool = Field(..., alias="hasAttempt")
    message: str = Field(..., min_length=1)
    hint: str | None = None
    reward: dict[str, Any] | None = None
    next_lesson: str | None = Field(default=None, alias="nextLesson")
    error: str | None = None
