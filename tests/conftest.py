"""Pytest fixtures for extendedquiz tests.

Storage and service tests run against an in-memory SQLite database selected
by the `test` environment's storage config. The schema is rebuilt from the
table metadata for every test, so each test starts with empty tables.

Usage:
    def test_get_quiz(db_session: Session, quiz_factory):
        quiz = quiz_factory(name="Week 1")
        with db_session.begin():
            assert quiz_storage.get(quiz.quiz_id, session=db_session) == quiz
"""

from __future__ import annotations

import datetime
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
from sqlalchemy.orm import Session

import extendedquiz
from extendedquiz.core import ExtendedQuizContainer, TimestampProvider
from extendedquiz.model import Attempt, AttemptState, DeploymentEnvironment, GradeRecord, GradeVisibility, GroupID, \
    Quiz, QuizID, QuizOverride, UserID
from extendedquiz.service.notification import AttemptEvent
from extendedquiz.storage import attempt as attempt_storage
from extendedquiz.storage import grade as grade_storage
from extendedquiz.storage import group as group_storage
from extendedquiz.storage import override as override_storage
from extendedquiz.storage import quiz as quiz_storage
from extendedquiz.storage.table import base

NOW = datetime.datetime(2026, 3, 2, 9, 30, tzinfo=datetime.UTC)


@pytest.fixture(scope="session")
def container() -> t.Generator[ExtendedQuizContainer]:
    """Boot the DI container for the test session.

    Uses the Test environment, which selects an in-memory SQLite database.
    """
    ct = ExtendedQuizContainer()
    root = Path(os.path.dirname(extendedquiz.__file__)).parent

    ExtendedQuizContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )

    yield ct

    ct.shutdown_resources()


@pytest.fixture
def db_session(container: ExtendedQuizContainer) -> t.Generator[Session]:
    """Provide a database session over freshly created tables.

    autobegin=False matches production, so tests wrap their calls in
    `with db_session.begin():` the way callers of the storage layer do.
    """
    engine = container.storage().persistent().engine()
    base.metadata.drop_all(engine)
    base.metadata.create_all(engine)

    session = Session(bind=engine, autobegin=False, expire_on_commit=False)

    yield session

    session.close()


@pytest.fixture
def utcnow() -> TimestampProvider:
    """A clock stuck at NOW."""
    return lambda: NOW


@pytest.fixture
def now(utcnow: TimestampProvider) -> int:
    return int(utcnow().timestamp())


class RecordingGradebook(object):
    """Gradebook that remembers what it was sent."""

    def __init__(self):
        self.pushed: list[tuple[Quiz, dict[UserID, float | None]]] = []
        self.items: list[tuple[Quiz, GradeVisibility]] = []
        self.deleted: list[QuizID] = []

    def push_grades(self, quiz: Quiz, grades: t.Mapping[UserID, float | None]) -> None:
        self.pushed.append((quiz, dict(grades)))

    def update_item(self, quiz: Quiz, visibility: GradeVisibility) -> None:
        self.items.append((quiz, visibility))

    def delete_item(self, quiz: Quiz) -> None:
        self.deleted.append(quiz.quiz_id)

    @property
    def latest(self) -> dict[UserID, float | None]:
        """Every grade pushed so far, later pushes winning."""
        grades: dict[UserID, float | None] = {}
        for _, pushed in self.pushed:
            grades.update(pushed)
        return grades


class RecordingNotifier(object):
    def __init__(self):
        self.events: list[tuple[AttemptEvent, Attempt]] = []

    def notify(self, event: AttemptEvent, quiz: Quiz, attempt: Attempt) -> None:
        self.events.append((event, attempt))


@pytest.fixture
def gradebook() -> RecordingGradebook:
    return RecordingGradebook()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def quiz_factory(db_session: Session) -> t.Callable[..., Quiz]:
    """Factory fixture for creating quizzes.

    Usage:
        def test_something(quiz_factory):
            quiz = quiz_factory(grade_method=GradeMethod.Average, sum_grades=20.0)
    """

    def create_quiz(name: str = "Test Quiz", **kwargs: t.Any) -> Quiz:
        kwargs.setdefault("sum_grades", 10.0)
        with db_session.begin():
            return quiz_storage.create({"name": name, **kwargs}, session=db_session)

    return create_quiz


@pytest.fixture
def test_quiz(quiz_factory: t.Callable[..., Quiz]) -> Quiz:
    """Provide a quiz out of 10 whose questions are also worth 10."""
    return quiz_factory(name="Weekly Quiz")


@pytest.fixture
def override_factory(db_session: Session, test_quiz: Quiz) -> t.Callable[..., QuizOverride]:
    """Factory fixture for creating overrides; targets a fresh user unless told otherwise."""

    def create_override(
        quiz: Quiz | None = None,
        user_id: UserID | None = None,
        group_id: GroupID | None = None,
        **kwargs: t.Any,
    ) -> QuizOverride:
        if user_id is None and group_id is None:
            user_id = UserID()
        with db_session.begin():
            return override_storage.create(
                {
                    "quiz_id": (quiz or test_quiz).quiz_id,
                    "user_id": user_id,
                    "group_id": group_id,
                    **kwargs,
                },
                session=db_session,
            )

    return create_override


@pytest.fixture
def attempt_factory(db_session: Session, test_quiz: Quiz) -> t.Callable[..., Attempt]:
    """Factory fixture for creating attempts, finished by default.

    Usage:
        def test_something(attempt_factory):
            attempt = attempt_factory(user_id=user, sum_grades=7.5)
    """

    def create_attempt(
        quiz: Quiz | None = None,
        user_id: UserID | None = None,
        sum_grades: float | None = None,
        state: AttemptState = AttemptState.Finished,
        **kwargs: t.Any,
    ) -> Attempt:
        with db_session.begin():
            return attempt_storage.create(
                {
                    "quiz_id": (quiz or test_quiz).quiz_id,
                    "user_id": user_id or UserID(),
                    "sum_grades": sum_grades,
                    "state": state,
                    **kwargs,
                },
                session=db_session,
            )

    return create_attempt


@pytest.fixture
def grade_factory(db_session: Session, test_quiz: Quiz, now: int) -> t.Callable[..., GradeRecord]:
    def create_grade(user_id: UserID, grade: float, quiz: Quiz | None = None) -> GradeRecord:
        with db_session.begin():
            return grade_storage.create(
                (quiz or test_quiz).quiz_id, user_id, grade=grade, time_modified=now, session=db_session
            )

    return create_grade


@pytest.fixture
def membership_factory(db_session: Session) -> t.Callable[[GroupID, UserID], None]:
    def add_membership(group_id: GroupID, user_id: UserID) -> None:
        with db_session.begin():
            group_storage.add(group_id, user_id, session=db_session)

    return add_membership
