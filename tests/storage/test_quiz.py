"""Tests for extendedquiz.storage.quiz module."""

from __future__ import annotations

import typing as t

import pytest
from sqlalchemy.orm import Session

from extendedquiz.model import GradeMethod, Quiz, QuizID
from extendedquiz.storage import quiz as quiz_storage


class TestCreate(object):
    def test_defaults(self, db_session: Session) -> None:
        """create() fills unspecified settings with the quiz defaults."""
        with db_session.begin():
            quiz = quiz_storage.create({"name": "Defaults"}, session=db_session)

        assert quiz.name == "Defaults"
        assert quiz.time_open == 0
        assert quiz.max_attempts == 0
        assert quiz.grade_method is GradeMethod.Highest
        assert quiz.max_grade == 10.0
        assert quiz.question_decimal_points == -1

    def test_grade_method_round_trips(self, quiz_factory: t.Callable[..., Quiz]) -> None:
        quiz = quiz_factory(grade_method=GradeMethod.Average)
        assert quiz.grade_method is GradeMethod.Average


class TestGet(object):
    def test_get(self, db_session: Session, test_quiz: Quiz) -> None:
        with db_session.begin():
            result = quiz_storage.get(test_quiz.quiz_id, session=db_session)

        assert result == test_quiz

    def test_get_nonexistent_returns_none(self, db_session: Session) -> None:
        with db_session.begin():
            assert quiz_storage.get(QuizID(), session=db_session) is None


class TestFind(object):
    def test_find_by_ids(self, db_session: Session, quiz_factory: t.Callable[..., Quiz]) -> None:
        q1, q2, _ = quiz_factory(), quiz_factory(), quiz_factory()

        with db_session.begin():
            result = quiz_storage.find(quiz_ids={q1.quiz_id, q2.quiz_id}, session=db_session)

        assert {q.quiz_id for q in result} == {q1.quiz_id, q2.quiz_id}


class TestUpdate(object):
    def test_update_fields(self, db_session: Session, test_quiz: Quiz) -> None:
        """update() changes only the given fields."""
        with db_session.begin():
            quiz_storage.update(
                test_quiz.quiz_id, max_grade=20.0, grade_method=GradeMethod.Last, session=db_session
            )
            result = quiz_storage.get(test_quiz.quiz_id, session=db_session)

        assert result is not None
        assert result.max_grade == 20.0
        assert result.grade_method is GradeMethod.Last
        assert result.sum_grades == test_quiz.sum_grades

    def test_update_nonexistent_raises(self, db_session: Session) -> None:
        with db_session.begin():
            with pytest.raises(KeyError):
                quiz_storage.update(QuizID(), name="Nope", session=db_session)


class TestDelete(object):
    def test_delete(self, db_session: Session, test_quiz: Quiz) -> None:
        with db_session.begin():
            assert quiz_storage.delete(test_quiz.quiz_id, session=db_session)
            assert quiz_storage.get(test_quiz.quiz_id, session=db_session) is None

    def test_delete_nonexistent(self, db_session: Session) -> None:
        with db_session.begin():
            assert not quiz_storage.delete(QuizID(), session=db_session)
