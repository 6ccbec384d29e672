"""Tests for extendedquiz.rules.visibility."""

from __future__ import annotations

import pytest

from extendedquiz.model import GradeVisibility, Quiz, QuizID, ReviewTime
from extendedquiz.rules import grade_item_visibility

QUIZ = Quiz(quiz_id=QuizID(), name="Quiz", time_close=5000)


class TestGradeItemVisibility(object):
    @pytest.mark.parametrize(
        "marks, expected",
        [
            (0, GradeVisibility(hidden=True)),
            (ReviewTime.During | ReviewTime.ImmediatelyAfter, GradeVisibility(hidden=True)),
            (ReviewTime.AfterClose, GradeVisibility(hidden=True, hidden_until=5000)),
            (ReviewTime.LaterWhileOpen, GradeVisibility(hidden=False)),
            (ReviewTime.LaterWhileOpen | ReviewTime.AfterClose, GradeVisibility(hidden=False)),
        ],
    )
    def test_review_marks(self, marks: int, expected: GradeVisibility) -> None:
        quiz = QUIZ.model_copy(update={"review_marks": int(marks)})
        assert grade_item_visibility(quiz) == expected

    def test_after_close_without_close_date(self) -> None:
        quiz = QUIZ.model_copy(update={"review_marks": int(ReviewTime.AfterClose), "time_close": 0})
        assert grade_item_visibility(quiz) == GradeVisibility(hidden=True)

    def test_hidden_quiz(self) -> None:
        quiz = QUIZ.model_copy(update={"review_marks": int(ReviewTime.LaterWhileOpen), "visible": False})
        assert grade_item_visibility(quiz) == GradeVisibility(hidden=True)
