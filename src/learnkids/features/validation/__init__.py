"""Guided validation: lesson pattern check plus near-miss diagnosis."""

from .engine import DEFAULT_MAX_LENGTH, check_submission, evaluate_pattern, submission_problem
from .guided import apply_guided, guided_rule, registered_rules
from .schemas import ValidationResult

__all__ = [
    "DEFAULT_MAX_LENGTH",
    "ValidationResult",
    "apply_guided",
    "check_submission",
    "evaluate_pattern",
    "guided_rule",
    "registered_rules",
    "submission_problem",
]
