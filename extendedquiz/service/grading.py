"""
Keeps GradeRecords and the host gradebook in step with attempts and with
changes to a quiz's grading settings. Nothing here commits: callers wrap
these in their own `session.begin()`.
"""

from __future__ import annotations

import logging

import extendedquiz.storage as storage
from extendedquiz.core import di
from extendedquiz.core.provider import epoch, TimestampProvider
from extendedquiz.model import AttemptState, GradeAction, GradeChange, Quiz, UserID
from extendedquiz.rules import compute_best_grade, diff_grades, eligible_attempts, EPSILON, grade_item_visibility, \
    rescale_grade
from extendedquiz.storage import Session

from .gradebook import Gradebook

logger = logging.getLogger(__name__)


def save_best_grade(
    quiz: Quiz,
    user_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    gradebook: Gradebook = di.Provide["gradebook"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> float | None:
    """Recompute one user's final grade, store it (or drop it when there is none) and push it"""
    attempts = eligible_attempts(
        storage.attempt.find(
            quiz_id=quiz.quiz_id,
            user_id=user_id,
            states=[AttemptState.Finished],
            is_preview=False,
            session=session,
        )
    )
    best = rescale_grade(compute_best_grade(quiz.grade_method, attempts), quiz)

    record = storage.grade.get(quiz.quiz_id, user_id, session=session)
    if best is None:
        if record is not None:
            storage.grade.delete(quiz.quiz_id, user_id, session=session)
    elif record is None:
        storage.grade.create(quiz.quiz_id, user_id, grade=best, time_modified=epoch(utcnow), session=session)
    else:
        storage.grade.update(quiz.quiz_id, user_id, grade=best, time_modified=epoch(utcnow), session=session)

    logger.debug(
        "saved best grade",
        extra={
            "quiz_id": quiz.quiz_id,
            "user_id": user_id,
            "method": quiz.grade_method,
            "attempts": len(attempts),
            "grade": best,
        },
    )
    gradebook.push_grades(quiz, {user_id: best})
    return best


def recompute_all_final_grades(
    quiz: Quiz,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> tuple[dict[UserID, float | None], list[GradeChange]]:
    """
    Final grade of every user with a finished attempt or a grade record,
    computed with one aggregate query, then written back touching only the
    records that changed. Returns the grades and the changes made.
    """
    raw = storage.grade.aggregate_raw_grades(quiz.quiz_id, quiz.grade_method, session=session)
    grades = {user_id: rescale_grade(r, quiz) for user_id, r in raw.items()}
    existing = {g.user_id: g for g in storage.grade.find(quiz_id=quiz.quiz_id, session=session)}
    changes = diff_grades(grades, existing)

    now = epoch(utcnow)
    for change in changes:
        match change.action:
            case GradeAction.Delete:
                storage.grade.delete(quiz.quiz_id, change.user_id, session=session)
            case GradeAction.Insert:
                assert change.new_grade is not None
                storage.grade.create(
                    quiz.quiz_id, change.user_id, grade=change.new_grade, time_modified=now, session=session
                )
            case GradeAction.Update:
                assert change.new_grade is not None
                storage.grade.update(
                    quiz.quiz_id, change.user_id, grade=change.new_grade, time_modified=now, session=session
                )

    logger.info(
        "recomputed final grades",
        extra={
            "quiz_id": quiz.quiz_id,
            "method": quiz.grade_method,
            "users": len(grades),
            "inserted": sum(1 for c in changes if c.action is GradeAction.Insert),
            "updated": sum(1 for c in changes if c.action is GradeAction.Update),
            "deleted": sum(1 for c in changes if c.action is GradeAction.Delete),
        },
    )
    return grades, changes


def update_all_final_grades(
    quiz: Quiz,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    gradebook: Gradebook = di.Provide["gradebook"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> list[GradeChange]:
    _, changes = recompute_all_final_grades(quiz, session=session, utcnow=utcnow)
    if changes:
        gradebook.push_grades(quiz, {c.user_id: c.new_grade for c in changes})
    return changes


def push_all_grades(
    quiz: Quiz,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    gradebook: Gradebook = di.Provide["gradebook"],
) -> None:
    """Refresh the grade item and every stored grade in the gradebook"""
    gradebook.update_item(quiz, grade_item_visibility(quiz))
    records = storage.grade.find(quiz_id=quiz.quiz_id, session=session)
    gradebook.push_grades(quiz, {r.user_id: r.grade for r in records})


def set_max_grade(
    quiz: Quiz,
    new_grade: float,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    gradebook: Gradebook = di.Provide["gradebook"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> Quiz:
    """
    Change the maximum grade and bring stored grades onto the new scale. A
    quiz whose old maximum was below 1 is recomputed from its attempts
    rather than scaled, as scaling from (near) zero loses everything.
    """
    old_grade = quiz.max_grade
    if abs(old_grade - new_grade) < 1e-7:
        return quiz

    storage.quiz.update(quiz.quiz_id, max_grade=new_grade, session=session)
    quiz = quiz.model_copy(update={"max_grade": new_grade})

    if old_grade < 1:
        recompute_all_final_grades(quiz, session=session, utcnow=utcnow)
    else:
        storage.grade.scale_all(quiz.quiz_id, new_grade / old_grade, time_modified=epoch(utcnow), session=session)

    logger.info(
        "changed maximum grade",
        extra={
            "quiz_id": quiz.quiz_id,
            "old": old_grade,
            "new": new_grade,
        },
    )
    push_all_grades(quiz, session=session, gradebook=gradebook)
    return quiz


def update_sum_grades(
    quiz: Quiz,
    sum_grades: float,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    gradebook: Gradebook = di.Provide["gradebook"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> Quiz:
    """
    Store a newly computed total of the quiz's question marks. A total that
    collapses to zero while real attempts exist cannot be rescaled, so the
    quiz's maximum grade is reset to 0 as well.
    """
    storage.quiz.update(quiz.quiz_id, sum_grades=sum_grades, session=session)
    quiz = quiz.model_copy(update={"sum_grades": sum_grades})

    if sum_grades < EPSILON and storage.attempt.count(quiz_id=quiz.quiz_id, is_preview=False, session=session):
        logger.warning(
            "quiz has no marks left but has attempts, resetting its grade",
            extra={
                "quiz_id": quiz.quiz_id,
                "sum_grades": sum_grades,
            },
        )
        quiz = set_max_grade(quiz, 0.0, session=session, gradebook=gradebook, utcnow=utcnow)
    return quiz
