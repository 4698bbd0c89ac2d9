from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ...core.models import APIModel
from ..validation.engine import DEFAULT_MAX_LENGTH

__all__ = [
    "CheckWorkArguments",
    "CourseDetailsArguments",
    "JsonRpcRequest",
    "ListCoursesArguments",
    "ResourceContent",
    "ResourceDescriptor",
    "ResourceReadParams",
    "StartLessonArguments",
    "TextContent",
    "ToolArguments",
    "ToolCallParams",
    "ToolDescriptor",
    "ToolResult",
    "input_schema",
]

MIN_LESSON_NUMBER = 1
MAX_LESSON_NUMBER = 10


class JsonRpcRequest(BaseModel):
    jsonrpc: Literal["2.0"]
    method: str = Field(..., min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)
    id: str | int | None = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class ToolCallParams(BaseModel):
    name: str = Field(..., min_length=1)
    arguments: dict[str, Any] = Field(default_factory=dict)


class ResourceReadParams(BaseModel):
    uri: str = Field(..., min_length=1)


# ---------------------------------------------------------------- tool inputs
class ToolArguments(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ListCoursesArguments(ToolArguments):
    pass


class CourseDetailsArguments(ToolArguments):
    course_id: str = Field(
        ...,
        alias="courseId",
        description='Course ID from the course list (e.g., "python-kids")',
    )


class StartLessonArguments(ToolArguments):
    course_id: str = Field(..., alias="courseId", description='Course ID (e.g., "python-kids")')
    lesson_number: int = Field(
        ...,
        alias="lessonNumber",
        ge=MIN_LESSON_NUMBER,
        le=MAX_LESSON_NUMBER,
        description=f"Lesson number ({MIN_LESSON_NUMBER}-{MAX_LESSON_NUMBER})",
    )


class CheckWorkArguments(StartLessonArguments):
    # Non-string and oversized code is graded by the validation engine, which
    # answers with correct=false instead of a schema error.
    student_code: Any = Field(
        ...,
        alias="studentCode",
        description="The student's code submission",
        json_schema_extra={"type": "string", "maxLength": DEFAULT_MAX_LENGTH},
    )


def input_schema(model: type[ToolArguments]) -> dict[str, Any]:
    """JSON Schema advertised for ``model``, without pydantic's generated titles."""

    schema = model.model_json_schema(by_alias=True)
    schema.pop("title", None)
    schema.setdefault("properties", {})
    for prop in schema["properties"].values():
        prop.pop("title", None)
    return schema


# ---------------------------------------------------------------- outputs
class TextContent(APIModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(APIModel):
    content: list[TextContent]
    structured_content: dict[str, Any] | None = Field(default=None, alias="structuredContent")
    is_error: bool | None = Field(default=None, alias="isError")

    @classmethod
    def text(cls, text: str, structured: dict[str, Any] | None = None) -> ToolResult:
        return cls(content=[TextContent(text=text)], structured_content=structured)

    @classmethod
    def error(cls, text: str) -> ToolResult:
        return cls(content=[TextContent(text=text)], is_error=True)


class ToolDescriptor(APIModel):
    name: str
    title: str
    description: str
    input_schema: dict[str, Any] = Field(..., alias="inputSchema")
    annotations: dict[str, Any] | None = None


class ResourceDescriptor(APIModel):
    uri: str
    name: str
    description: str
    mime_type: str = Field(..., alias="mimeType")


class ResourceContent(APIModel):
    uri: str
    mime_type: str = Field(..., alias="mimeType")
    text: str
