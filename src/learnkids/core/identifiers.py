"""Validation of externally supplied course and lesson identifiers.

Every course id that arrives over the wire is checked here before it reaches
the content store, even though the store never turns request ids into file
paths directly. The checks short-circuit in a fixed order and never raise.
"""

from __future__ import annotations

import re
from collections.abc import Collection
from typing import Final
from urllib.parse import unquote

__all__ = [
    "is_valid_course_id",
    "is_valid_lesson_id",
    "lesson_id_for",
]

_LESSON_ID_RE: Final = re.compile(r"lesson-[0-9]+")
_MALFORMED_ESCAPE_RE: Final = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _has_traversal_shape(value: str) -> bool:
    return ".." in value or "/" in value or "\\" in value


def _percent_decode(value: str) -> str | None:
    """Decode ``%XX`` escapes, returning ``None`` for malformed input."""

    if _MALFORMED_ESCAPE_RE.search(value):
        return None
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        return None


def is_valid_course_id(candidate: object, known_ids: Collection[str]) -> bool:
    if not isinstance(candidate, str) or not candidate:
        return False
    if ".." in candidate:
        return False
    if "/" in candidate or "\\" in candidate:
        return False
    if "\x00" in candidate:
        return False
    decoded = _percent_decode(candidate)
    if decoded is None or _has_traversal_shape(decoded):
        return False
    return candidate in known_ids


def is_valid_lesson_id(candidate: object) -> bool:
    if not isinstance(candidate, str):
        return False
    if _has_traversal_shape(candidate):
        return False
    return _LESSON_ID_RE.fullmatch(candidate) is not None


def lesson_id_for(number: int) -> str:
    return f"lesson-{number}"
