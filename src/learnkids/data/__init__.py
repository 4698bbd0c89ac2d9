"""Bundled course content and the store that serves it."""

from .content_store import ContentStore, Course, Lesson, LessonValidation

__all__ = ["ContentStore", "Course", "Lesson", "LessonValidation"]
