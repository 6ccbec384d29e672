"""Tests for extendedquiz.rules.grading."""

from __future__ import annotations

import pytest

from extendedquiz.model import Attempt, AttemptID, AttemptState, GradeAction, GradeMethod, GradeRecord, Quiz, \
    QuizID, UserID
from extendedquiz.rules import aggregate_final_grades, calculate_best_attempt, compute_best_grade, diff_grades, \
    eligible_attempts, format_grade, format_question_grade, has_grades, rescale_grade
from extendedquiz.rules.grading import NOT_YET_GRADED

QUIZ = Quiz(quiz_id=QuizID(), name="Final", max_grade=100.0, sum_grades=100.0)
USER = UserID()


def attempts(*grades: float | None, user_id: UserID = USER, quiz: Quiz = QUIZ) -> list[Attempt]:
    return [
        Attempt(
            attempt_id=AttemptID(),
            quiz_id=quiz.quiz_id,
            user_id=user_id,
            attempt_number=n,
            state=AttemptState.Finished,
            sum_grades=g,
        )
        for n, g in enumerate(grades, start=1)
    ]


class TestComputeBestGrade(object):
    def test_highest(self) -> None:
        assert compute_best_grade(GradeMethod.Highest, attempts(80, 95, 60)) == 95

    def test_highest_ignores_ungraded(self) -> None:
        assert compute_best_grade(GradeMethod.Highest, attempts(None, 40, None)) == 40

    def test_average_skips_ungraded(self) -> None:
        assert compute_best_grade(GradeMethod.Average, attempts(80, None, 60)) == 70

    def test_average_of_nothing_graded(self) -> None:
        assert compute_best_grade(GradeMethod.Average, attempts(None, None)) is None

    def test_first(self) -> None:
        assert compute_best_grade(GradeMethod.First, attempts(50, 90)) == 50

    def test_last(self) -> None:
        assert compute_best_grade(GradeMethod.Last, attempts(50, 90)) == 90

    def test_first_and_last_do_not_skip_ungraded(self) -> None:
        """FIRST and LAST take the attempt's grade as is, even when it is missing."""
        assert compute_best_grade(GradeMethod.First, attempts(None, 90)) is None
        assert compute_best_grade(GradeMethod.Last, attempts(90, None)) is None

    @pytest.mark.parametrize("method", list(GradeMethod))
    def test_no_attempts(self, method: GradeMethod) -> None:
        assert compute_best_grade(method, []) is None


class TestEligibleAttempts(object):
    def test_filters_and_orders(self) -> None:
        """Only finished non-preview attempts count, in attempt order."""
        a1, a2, a3, a4 = attempts(10, 20, 30, 40)
        a2 = a2.model_copy(update={"state": AttemptState.InProgress})
        a3 = a3.model_copy(update={"is_preview": True})

        assert eligible_attempts([a4, a3, a2, a1]) == [a1, a4]


class TestRescaleGrade(object):
    def test_rescale(self) -> None:
        quiz = QUIZ.model_copy(update={"max_grade": 10.0, "sum_grades": 20.0})
        assert rescale_grade(15.0, quiz) == pytest.approx(7.5)

    def test_zero_sum_grades(self) -> None:
        """A quiz without marks cannot be rescaled; the grade is 0."""
        quiz = QUIZ.model_copy(update={"sum_grades": 0.0})
        assert rescale_grade(42.0, quiz) == 0

    def test_none_stays_none(self) -> None:
        assert rescale_grade(None, QUIZ) is None


class TestCalculateBestAttempt(object):
    def test_highest_prefers_first_of_equals(self) -> None:
        ls = attempts(70, 90, 90)
        assert calculate_best_attempt(GradeMethod.Highest, ls) == ls[1]

    def test_first(self) -> None:
        ls = attempts(70, 90)
        assert calculate_best_attempt(GradeMethod.First, ls) == ls[0]

    @pytest.mark.parametrize("method", [GradeMethod.Last, GradeMethod.Average])
    def test_last_attempt(self, method: GradeMethod) -> None:
        ls = attempts(70, 90, 10)
        assert calculate_best_attempt(method, ls) == ls[2]

    def test_empty(self) -> None:
        assert calculate_best_attempt(GradeMethod.Highest, []) is None


class TestAggregateFinalGrades(object):
    def test_per_user(self) -> None:
        u1, u2 = UserID(), UserID()
        quiz = QUIZ.model_copy(update={"max_grade": 10.0, "sum_grades": 20.0})
        ls = attempts(10, 16, user_id=u1, quiz=quiz) + attempts(4, user_id=u2, quiz=quiz)

        result = aggregate_final_grades(quiz, ls)

        assert result == {u1: pytest.approx(8.0), u2: pytest.approx(2.0)}

    def test_graded_user_without_attempts(self) -> None:
        """A user with a stored grade but no eligible attempt maps to None."""
        u1 = UserID()
        assert aggregate_final_grades(QUIZ, [], graded_users=[u1]) == {u1: None}

    def test_zero_sum_grades_gives_zero(self) -> None:
        quiz = QUIZ.model_copy(update={"sum_grades": 0.0})
        assert aggregate_final_grades(quiz, attempts(5, quiz=quiz)) == {USER: 0}


class TestDiffGrades(object):
    def record(self, user_id: UserID, grade: float) -> GradeRecord:
        return GradeRecord(quiz_id=QUIZ.quiz_id, user_id=user_id, grade=grade, time_modified=0)

    def test_actions(self) -> None:
        new, changed, gone, same = UserID(), UserID(), UserID(), UserID()
        existing = {
            changed: self.record(changed, 5.0),
            gone: self.record(gone, 3.0),
            same: self.record(same, 7.0),
        }

        changes = diff_grades({new: 1.0, changed: 6.0, gone: None, same: 7.0 + 1e-6}, existing)

        assert {(c.action, c.user_id) for c in changes} == {
            (GradeAction.Insert, new),
            (GradeAction.Update, changed),
            (GradeAction.Delete, gone),
        }

    def test_unknown_none_is_noop(self) -> None:
        assert diff_grades({UserID(): None}, {}) == []


class TestFormatting(object):
    def test_format_grade(self) -> None:
        quiz = QUIZ.model_copy(update={"decimal_points": 1})
        assert format_grade(quiz, 7.25) == "7.2"

    def test_not_yet_graded(self) -> None:
        assert format_grade(QUIZ, None) == NOT_YET_GRADED

    def test_question_grade_follows_quiz_by_default(self) -> None:
        assert format_question_grade(QUIZ, 1.5) == "1.50"

    def test_question_decimal_points(self) -> None:
        quiz = QUIZ.model_copy(update={"question_decimal_points": 0})
        assert format_question_grade(quiz, 1.4) == "1"

    def test_has_grades(self) -> None:
        assert has_grades(QUIZ)
        assert not has_grades(QUIZ.model_copy(update={"sum_grades": 0.0}))
        assert not has_grades(QUIZ.model_copy(update={"max_grade": 0.0}))
