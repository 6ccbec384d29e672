from __future__ import annotations

import enum
import logging
import typing as t

from extendedquiz.model import Attempt, Quiz

logger = logging.getLogger(__name__)


class AttemptEvent(enum.Enum):
    Submitted = "submitted"
    Overdue = "overdue"


class Notifier(t.Protocol):
    def notify(self, event: AttemptEvent, quiz: Quiz, attempt: Attempt) -> None: ...


class LoggingNotifier(object):
    def notify(self, event: AttemptEvent, quiz: Quiz, attempt: Attempt) -> None:
        logger.info(
            "attempt notification",
            extra={
                "event": event,
                "quiz_id": quiz.quiz_id,
                "attempt_id": attempt.attempt_id,
                "user_id": attempt.user_id,
            },
        )
