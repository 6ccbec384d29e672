"""
Grade aggregation: the representative score of a user's attempts, the
rescale onto the quiz's grade scale, and the diff of recomputed grades
against stored grade records
"""

from __future__ import annotations

import typing as t

from extendedquiz.model import Attempt, AttemptState, GradeAction, GradeChange, GradeMethod, GradeRecord, Quiz, \
    UserID

# grades closer than this are considered equal, sums below it are treated as zero
EPSILON = 1e-5


def eligible_attempts(attempts: t.Iterable[Attempt]) -> list[Attempt]:
    """Finished, non-preview attempts ordered by attempt number"""
    return sorted(
        (a for a in attempts if a.state is AttemptState.Finished and not a.is_preview),
        key=lambda a: a.attempt_number,
    )


def compute_best_grade(method: GradeMethod, attempts: t.Sequence[Attempt]) -> float | None:
    """
    Raw (unscaled) grade for one user, `attempts` ordered by attempt number.

    FIRST and LAST take the raw sum_grades of the first/last attempt, even if
    it is None; AVERAGE skips attempts without a grade; HIGHEST ignores them.
    """
    if not attempts:
        return None

    match method:
        case GradeMethod.First:
            return attempts[0].sum_grades
        case GradeMethod.Last:
            return attempts[-1].sum_grades
        case GradeMethod.Average:
            graded = [a.sum_grades for a in attempts if a.sum_grades is not None]
            if not graded:
                return None
            return sum(graded) / len(graded)
        case _:
            best: float | None = None
            for attempt in attempts:
                if attempt.sum_grades is not None and (best is None or attempt.sum_grades > best):
                    best = attempt.sum_grades
            return best


def rescale_grade(raw: float | None, quiz: Quiz) -> float | None:
    if raw is None:
        return None
    if quiz.sum_grades > EPSILON:
        return raw * quiz.max_grade / quiz.sum_grades
    return 0.0


def calculate_best_attempt(method: GradeMethod, attempts: t.Sequence[Attempt]) -> Attempt | None:
    """The attempt that best represents the final grade; AVERAGE has none, so it uses the last one"""
    if not attempts:
        return None

    match method:
        case GradeMethod.First:
            return attempts[0]
        case GradeMethod.Last | GradeMethod.Average:
            return attempts[-1]
        case _:
            best: Attempt | None = None
            for attempt in attempts:
                if attempt.sum_grades is None:
                    continue
                if best is None or attempt.sum_grades > t.cast(float, best.sum_grades):
                    best = attempt
            return best


def aggregate_final_grades(
    quiz: Quiz,
    attempts: t.Iterable[Attempt],
    graded_users: t.Iterable[UserID] = (),
) -> dict[UserID, float | None]:
    """
    Rescaled final grade of every user with an eligible attempt or an
    existing grade record (`graded_users`); users with nothing left map to
    None
    """
    by_user: dict[UserID, list[Attempt]] = {user_id: [] for user_id in graded_users}
    for attempt in eligible_attempts(a for a in attempts if a.quiz_id == quiz.quiz_id):
        by_user.setdefault(attempt.user_id, []).append(attempt)
    return {
        user_id: rescale_grade(compute_best_grade(quiz.grade_method, ls), quiz) for user_id, ls in by_user.items()
    }


def grades_differ(a: float, b: float) -> bool:
    return abs(a - b) > EPSILON


def diff_grades(
    new_grades: t.Mapping[UserID, float | None],
    existing: t.Mapping[UserID, GradeRecord],
) -> list[GradeChange]:
    """Changes needed to bring the stored grade records in line with `new_grades`; unchanged users are skipped"""
    changes: list[GradeChange] = []
    for user_id, new_grade in new_grades.items():
        record = existing.get(user_id)
        if new_grade is None:
            if record is not None:
                changes.append(GradeChange(action=GradeAction.Delete, user_id=user_id, old_grade=record.grade))
        elif record is None:
            changes.append(GradeChange(action=GradeAction.Insert, user_id=user_id, new_grade=new_grade))
        elif grades_differ(new_grade, record.grade):
            changes.append(
                GradeChange(action=GradeAction.Update, user_id=user_id, old_grade=record.grade, new_grade=new_grade)
            )
    return changes


def has_grades(quiz: Quiz) -> bool:
    return quiz.max_grade > EPSILON and quiz.sum_grades > EPSILON


NOT_YET_GRADED = "Not yet graded"


def format_grade(quiz: Quiz, grade: float | None) -> str:
    if grade is None:
        return NOT_YET_GRADED
    return f"{grade:.{quiz.decimal_points}f}"


def format_question_grade(quiz: Quiz, grade: float) -> str:
    places = quiz.decimal_points if quiz.question_decimal_points == -1 else quiz.question_decimal_points
    return f"{grade:.{places}f}"
