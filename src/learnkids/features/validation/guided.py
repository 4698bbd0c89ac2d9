"""Lesson-specific diagnosis for submissions that missed the lesson pattern.

The lesson pattern is the strict definition of a correct answer. When it does
not match, the rule registered for that lesson looks for common near-miss
shapes: the right logic under a different name is accepted with a naming tip,
while wrong literal kinds, missing operators, missing ``return`` statements
and short lists get a message naming the exact fix. A rule that recognises
nothing hands back the primary failure untouched.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Final

from ...data.content_store import Lesson
from .schemas import ValidationResult

__all__ = [
    "GuidedRule",
    "apply_guided",
    "correction",
    "guided_rule",
    "registered_rules",
    "success_for",
]

GuidedRule = Callable[[Lesson, str, ValidationResult], ValidationResult]

IDENTIFIER: Final = r"[A-Za-z_][A-Za-z0-9_]*"
_QUOTED_VALUE: Final = r"[\"'][^\"']+[\"']"

_RULES: dict[tuple[str, str], GuidedRule] = {}


def guided_rule(course_id: str, lesson_id: str) -> Callable[[GuidedRule], GuidedRule]:
    def register(rule: GuidedRule) -> GuidedRule:
        key = (course_id, lesson_id)
        if key in _RULES:
            raise ValueError(f"guided rule already registered for {course_id}/{lesson_id}")
        _RULES[key] = rule
        return rule

    return register


def registered_rules() -> dict[tuple[str, str], GuidedRule]:
    return dict(_RULES)


def success_for(lesson: Lesson, message: str | None = None) -> ValidationResult:
    reward = dict(lesson.reward) if lesson.reward else None
    reward_message = reward.get("message") if reward else None
    return ValidationResult(
        correct=True,
        has_attempt=True,
        message=message or (reward_message if isinstance(reward_message, str) and reward_message else "Excellent work!"),
        reward=reward,
        next_lesson=lesson.next_lesson_id,
    )


def correction(base: ValidationResult, message: str, hint: str | None = None) -> ValidationResult:
    return base.model_copy(update={"message": message, "hint": hint if hint is not None else base.hint})


def apply_guided(lesson: Lesson, submission: str, base: ValidationResult) -> ValidationResult:
    if base.correct or lesson.exercise is None:
        return base
    rule = _RULES.get((lesson.course_id, lesson.id))
    if rule is None:
        return base
    return rule(lesson, submission, base)


def _naming_tip(kind: str, expected: str) -> str:
    return f'Nice work! Tip: name the {kind} "{expected}" to match the instructions.'


def _quoted_assignment(name: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(name)}\s*=\s*{_QUOTED_VALUE}")


def _unquoted_assignment(name: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(name)}\s*=\s*[^\"'\n]+")


def _first_text_assignment(submission: str) -> str | None:
    match = re.search(rf"\b({IDENTIFIER})\s*=\s*{_QUOTED_VALUE}", submission)
    return match.group(1) if match else None


@guided_rule("python-kids", "lesson-1")
def _text_variable(lesson: Lesson, submission: str, base: ValidationResult) -> ValidationResult:
    expected = "favorite_animal"
    if _unquoted_assignment(expected).search(submission) and not _quoted_assignment(expected).search(submission):
        return correction(base, 'Use quotes around the animal name, like favorite_animal = "cat".', lesson.hint)

    name = _first_text_assignment(submission)
    if name is None or name == expected:
        return base
    if re.search(rf"print\s*\(\s*{re.escape(name)}\s*\)", submission):
        return success_for(lesson, _naming_tip("variable", expected))
    return correction(base, f'Try naming the variable "{expected}" and printing it.', lesson.hint)


@guided_rule("python-kids", "lesson-2")
def _adding_numbers(lesson: Lesson, submission: str, base: ValidationResult) -> ValidationResult:
    if re.search(r"\b(my_candies|friend_candies)\s*=\s*[\"']\d+[\"']", submission):
        return correction(base, 'Use numbers without quotes for candies (e.g., 7 instead of "7").', lesson.hint)

    numeric_assignments = re.findall(rf"\b{IDENTIFIER}\s*=\s*\d+", submission)
    if len(numeric_assignments) < 2:
        return base
    if "+" in submission:
        return success_for(lesson, "Nice work! Tip: follow the variable names from the template for this exercise.")
    return correction(base, "Remember to add the two candy counts together with +.", lesson.hint)


@guided_rule("python-kids", "lesson-3")
def _joining_text(lesson: Lesson, submission: str, base: ValidationResult) -> ValidationResult:
    expected = "my_name"
    if _unquoted_assignment(expected).search(submission) and not _quoted_assignment(expected).search(submission):
        return correction(base, "Put your name in quotes so Python knows it is text.", lesson.hint)

    name = _first_text_assignment(submission)
    if name is None or name == expected:
        return base
    escaped = re.escape(name)
    if re.search(rf"\+\s*{escaped}\b|\b{escaped}\s*\+", submission):
        return success_for(lesson, _naming_tip("variable", expected))
    return correction(
        base,
        f'Try creating a variable named "{expected}" and use it in your welcome message.',
        lesson.hint,
    )


@guided_rule("python-kids", "lesson-4")
def _hobby_list(lesson: Lesson, submission: str, base: ValidationResult) -> ValidationResult:
    list_match = re.search(r"\[.*?\]", submission, re.DOTALL)
    if list_match is None:
        return base
    quoted_items = re.findall(_QUOTED_VALUE, list_match.group(0))
    if len(quoted_items) >= 3:
        if re.search(r"\bmy_hobbies\s*=", submission):
            return base
        return success_for(lesson, _naming_tip("list", "my_hobbies"))
    if quoted_items:
        return correction(base, "Add at least three hobbies to the list.", lesson.hint)
    return correction(base, 'Put each hobby in quotes, like "reading".', lesson.hint)


@guided_rule("python-kids", "lesson-5")
def _greeting_function(lesson: Lesson, submission: str, base: ValidationResult) -> ValidationResult:
    definition = re.search(rf"def\s+({IDENTIFIER})\s*\(\s*({IDENTIFIER})\s*\)", submission)
    if definition is None:
        return base
    function_name, parameter = definition.group(1), definition.group(2)
    returns_parameter = re.search(rf"return.*\b{re.escape(parameter)}\b", submission, re.DOTALL)
    if returns_parameter and function_name != "make_introduction":
        return success_for(lesson, _naming_tip("function", "make_introduction"))
    if re.search(r"def\s+make_introduction", submission) and not re.search(r"\breturn\b", submission):
        return correction(base, "Remember to return the greeting from the function.", lesson.hint)
    return base
