from __future__ import annotations

import logging

import extendedquiz.storage as storage
from extendedquiz.core import di
from extendedquiz.model import Quiz
from extendedquiz.storage import Session

from .attempt import delete_all_attempts
from .gradebook import Gradebook
from .override import delete_all_overrides

logger = logging.getLogger(__name__)


def delete_quiz(
    quiz: Quiz,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    gradebook: Gradebook = di.Provide["gradebook"],
) -> None:
    """
    Permanently delete a quiz with everything that depends on it

    Raises:
        KeyError: If the quiz does not exist
    """
    if storage.quiz.get(quiz.quiz_id, session=session) is None:
        raise KeyError(f"Quiz {quiz.quiz_id} not found")

    attempts = delete_all_attempts(quiz, session=session, gradebook=gradebook)
    overrides = delete_all_overrides(quiz, session=session)
    variables = storage.variable.delete_all(quiz.quiz_id, session=session)
    gradebook.delete_item(quiz)

    storage.quiz.delete(quiz.quiz_id, session=session)
    logger.info(
        "deleted quiz",
        extra={
            "quiz_id": quiz.quiz_id,
            "attempts": attempts,
            "overrides": overrides,
            "variables": variables,
        },
    )
