__all__ = [
    "EPSILON",
    "ExtendedQuizError",
    "PreconditionViolation",
    "aggregate_final_grades",
    "attempt_allowed",
    "calculate_best_attempt",
    "compute_best_grade",
    "compute_time_check_state",
    "diff_grades",
    "eligible_attempts",
    "format_grade",
    "format_question_grade",
    "grade_item_visibility",
    "grades_differ",
    "has_grades",
    "rescale_grade",
    "resolve_effective_access",
]

from .access import attempt_allowed, resolve_effective_access
from .errors import ExtendedQuizError, PreconditionViolation
from .grading import aggregate_final_grades, calculate_best_attempt, compute_best_grade, diff_grades, \
    eligible_attempts, EPSILON, format_grade, format_question_grade, grades_differ, has_grades, rescale_grade
from .timing import compute_time_check_state
from .visibility import grade_item_visibility
