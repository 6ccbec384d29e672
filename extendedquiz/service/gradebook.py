"""The host gradebook, as seen from the grading services."""

from __future__ import annotations

import logging
import typing as t

from extendedquiz.model import GradeVisibility, Quiz, UserID

logger = logging.getLogger(__name__)


class Gradebook(t.Protocol):
    def push_grades(self, quiz: Quiz, grades: t.Mapping[UserID, float | None]) -> None:
        """Record final grades; None clears the user's grade"""
        ...

    def update_item(self, quiz: Quiz, visibility: GradeVisibility) -> None:
        """Create or refresh the quiz's grade item"""
        ...

    def delete_item(self, quiz: Quiz) -> None:
        """Remove the quiz's grade item with every grade in it"""
        ...


class LoggingGradebook(object):
    """Logs every hand-off; used when the host has not provided a gradebook"""

    def push_grades(self, quiz: Quiz, grades: t.Mapping[UserID, float | None]) -> None:
        logger.info(
            "pushing grades to gradebook",
            extra={
                "quiz_id": quiz.quiz_id,
                "grades": dict(grades),
            },
        )

    def update_item(self, quiz: Quiz, visibility: GradeVisibility) -> None:
        logger.info(
            "updating gradebook item",
            extra={
                "quiz_id": quiz.quiz_id,
                "max_grade": quiz.max_grade,
                "hidden": visibility.hidden,
                "hidden_until": visibility.hidden_until,
            },
        )

    def delete_item(self, quiz: Quiz) -> None:
        logger.info("deleting gradebook item", extra={"quiz_id": quiz.quiz_id})
