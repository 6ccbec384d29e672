"""Tests for extendedquiz.service.attempt."""

from __future__ import annotations

import typing as t

import pytest
from sqlalchemy.orm import Session

from extendedquiz.core import TimestampProvider
from extendedquiz.model import Attempt, AttemptState, GradeRecord, GroupID, Quiz, QuizOverride, UserID
from extendedquiz.rules import PreconditionViolation
from extendedquiz.service import attempt as attempt_service
from extendedquiz.service.notification import AttemptEvent
from extendedquiz.storage import attempt as attempt_storage
from extendedquiz.storage import grade as grade_storage

from ..conftest import RecordingGradebook, RecordingNotifier


class TestStartAttempt(object):
    def test_sets_time_check_state(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        utcnow: TimestampProvider,
        now: int,
    ) -> None:
        quiz = quiz_factory(time_limit=600)
        user_id = UserID()

        with db_session.begin():
            attempt = attempt_service.start_attempt(quiz, user_id, session=db_session, utcnow=utcnow)
            stored = attempt_storage.get(attempt.attempt_id, session=db_session)

        assert attempt.attempt_number == 1
        assert attempt.time_start == now
        assert stored is not None and stored.time_check_state == now + 600

    def test_user_override_extends_limit(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        override_factory: t.Callable[..., QuizOverride],
        utcnow: TimestampProvider,
        now: int,
    ) -> None:
        quiz = quiz_factory(time_limit=600)
        user_id = UserID()
        override_factory(quiz=quiz, user_id=user_id, time_limit=900)

        with db_session.begin():
            attempt = attempt_service.start_attempt(quiz, user_id, session=db_session, utcnow=utcnow)

        assert attempt.time_check_state == now + 900

    def test_no_attempts_left(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        attempt_factory: t.Callable[..., Attempt],
        utcnow: TimestampProvider,
    ) -> None:
        """maxAttempts counts finished attempts only, and previews are always allowed."""
        quiz = quiz_factory(max_attempts=1)
        user_id = UserID()
        attempt_factory(quiz=quiz, user_id=user_id, sum_grades=5.0)

        with db_session.begin():
            with pytest.raises(PreconditionViolation):
                attempt_service.start_attempt(quiz, user_id, session=db_session, utcnow=utcnow)
            preview = attempt_service.start_attempt(
                quiz, user_id, is_preview=True, session=db_session, utcnow=utcnow
            )

        assert preview.is_preview

    def test_group_override_allows_more(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        override_factory: t.Callable[..., QuizOverride],
        attempt_factory: t.Callable[..., Attempt],
        membership_factory: t.Callable[[GroupID, UserID], None],
        utcnow: TimestampProvider,
    ) -> None:
        quiz = quiz_factory(max_attempts=1)
        user_id, group_id = UserID(), GroupID()
        membership_factory(group_id, user_id)
        override_factory(quiz=quiz, group_id=group_id, max_attempts=0)
        attempt_factory(quiz=quiz, user_id=user_id, sum_grades=5.0)

        with db_session.begin():
            attempt = attempt_service.start_attempt(quiz, user_id, session=db_session, utcnow=utcnow)

        assert attempt.attempt_number == 2


class TestFinishAttempt(object):
    def test_finish_saves_grade_and_notifies(
        self,
        db_session: Session,
        test_quiz: Quiz,
        attempt_factory: t.Callable[..., Attempt],
        gradebook: RecordingGradebook,
        notifier: RecordingNotifier,
        utcnow: TimestampProvider,
        now: int,
    ) -> None:
        attempt = attempt_factory(state=AttemptState.InProgress)

        with db_session.begin():
            finished = attempt_service.finish_attempt(
                attempt.attempt_id,
                6.5,
                session=db_session,
                gradebook=gradebook,
                notifier=notifier,
                utcnow=utcnow,
            )
            record = grade_storage.get(test_quiz.quiz_id, attempt.user_id, session=db_session)

        assert finished.state is AttemptState.Finished
        assert finished.time_finish == now
        assert record is not None and record.grade == pytest.approx(6.5)
        assert [e for e, _ in notifier.events] == [AttemptEvent.Submitted]

    def test_cannot_finish_twice(
        self,
        db_session: Session,
        attempt_factory: t.Callable[..., Attempt],
        gradebook: RecordingGradebook,
        notifier: RecordingNotifier,
        utcnow: TimestampProvider,
    ) -> None:
        attempt = attempt_factory(sum_grades=1.0)

        with db_session.begin():
            with pytest.raises(PreconditionViolation):
                attempt_service.finish_attempt(
                    attempt.attempt_id,
                    2.0,
                    session=db_session,
                    gradebook=gradebook,
                    notifier=notifier,
                    utcnow=utcnow,
                )

    def test_preview_is_not_graded(
        self,
        db_session: Session,
        test_quiz: Quiz,
        attempt_factory: t.Callable[..., Attempt],
        gradebook: RecordingGradebook,
        notifier: RecordingNotifier,
        utcnow: TimestampProvider,
    ) -> None:
        attempt = attempt_factory(state=AttemptState.InProgress, is_preview=True)

        with db_session.begin():
            attempt_service.finish_attempt(
                attempt.attempt_id,
                9.0,
                session=db_session,
                gradebook=gradebook,
                notifier=notifier,
                utcnow=utcnow,
            )
            record = grade_storage.get(test_quiz.quiz_id, attempt.user_id, session=db_session)

        assert record is None
        assert gradebook.pushed == []


class TestMarkOverdue(object):
    def test_adds_grace_period(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        attempt_factory: t.Callable[..., Attempt],
        notifier: RecordingNotifier,
    ) -> None:
        quiz = quiz_factory(time_limit=600, grace_period=120)
        attempt = attempt_factory(quiz=quiz, state=AttemptState.InProgress, time_start=1000)

        with db_session.begin():
            overdue = attempt_service.mark_overdue(attempt.attempt_id, session=db_session, notifier=notifier)

        assert overdue.state is AttemptState.Overdue
        assert overdue.time_check_state == 1000 + 600 + 120
        assert [e for e, _ in notifier.events] == [AttemptEvent.Overdue]

    def test_only_in_progress(
        self,
        db_session: Session,
        attempt_factory: t.Callable[..., Attempt],
        notifier: RecordingNotifier,
    ) -> None:
        attempt = attempt_factory(state=AttemptState.Abandoned)

        with db_session.begin():
            with pytest.raises(PreconditionViolation):
                attempt_service.mark_overdue(attempt.attempt_id, session=db_session, notifier=notifier)


class TestAbandonAttempt(object):
    def test_overdue_attempt_is_abandoned(
        self, db_session: Session, attempt_factory: t.Callable[..., Attempt]
    ) -> None:
        attempt = attempt_factory(state=AttemptState.Overdue, time_check_state=5000)

        with db_session.begin():
            abandoned = attempt_service.abandon_attempt(attempt.attempt_id, session=db_session)
            stored = attempt_storage.get(attempt.attempt_id, session=db_session)

        assert abandoned.state is AttemptState.Abandoned
        assert stored is not None and stored.state is AttemptState.Abandoned
        assert stored.time_check_state is None

    def test_finished_attempt_is_closed(
        self, db_session: Session, attempt_factory: t.Callable[..., Attempt]
    ) -> None:
        attempt = attempt_factory(sum_grades=3.0)

        with db_session.begin():
            with pytest.raises(PreconditionViolation):
                attempt_service.abandon_attempt(attempt.attempt_id, session=db_session)


class TestDeleteAttempt(object):
    def test_last_attempt_removes_grade(
        self,
        db_session: Session,
        test_quiz: Quiz,
        attempt_factory: t.Callable[..., Attempt],
        grade_factory: t.Callable[..., GradeRecord],
        gradebook: RecordingGradebook,
        utcnow: TimestampProvider,
    ) -> None:
        attempt = attempt_factory(sum_grades=4.0)
        grade_factory(attempt.user_id, 4.0)

        with db_session.begin():
            attempt_service.delete_attempt(
                attempt, test_quiz, session=db_session, gradebook=gradebook, utcnow=utcnow
            )
            record = grade_storage.get(test_quiz.quiz_id, attempt.user_id, session=db_session)

        assert record is None
        assert gradebook.latest == {attempt.user_id: None}

    def test_regrades_remaining(
        self,
        db_session: Session,
        test_quiz: Quiz,
        attempt_factory: t.Callable[..., Attempt],
        grade_factory: t.Callable[..., GradeRecord],
        gradebook: RecordingGradebook,
        utcnow: TimestampProvider,
    ) -> None:
        user_id = UserID()
        attempt_factory(user_id=user_id, sum_grades=3.0)
        best = attempt_factory(user_id=user_id, sum_grades=9.0)
        grade_factory(user_id, 9.0)

        with db_session.begin():
            attempt_service.delete_attempt(best, test_quiz, session=db_session, gradebook=gradebook, utcnow=utcnow)
            record = grade_storage.get(test_quiz.quiz_id, user_id, session=db_session)

        assert record is not None and record.grade == pytest.approx(3.0)

    def test_attempt_from_other_quiz(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        test_quiz: Quiz,
        attempt_factory: t.Callable[..., Attempt],
        gradebook: RecordingGradebook,
        utcnow: TimestampProvider,
    ) -> None:
        attempt = attempt_factory(quiz=quiz_factory(name="Other"))

        with db_session.begin():
            with pytest.raises(PreconditionViolation):
                attempt_service.delete_attempt(
                    attempt, test_quiz, session=db_session, gradebook=gradebook, utcnow=utcnow
                )


class TestDeletePreviews(object):
    def test_deletes_previews_only(
        self,
        db_session: Session,
        test_quiz: Quiz,
        attempt_factory: t.Callable[..., Attempt],
    ) -> None:
        real = attempt_factory(sum_grades=1.0)
        attempt_factory(is_preview=True)
        attempt_factory(is_preview=True, state=AttemptState.InProgress)

        with db_session.begin():
            deleted = attempt_service.delete_previews(test_quiz, session=db_session)
            remaining = attempt_storage.find(quiz_id=test_quiz.quiz_id, session=db_session)

        assert deleted == 2
        assert [a.attempt_id for a in remaining] == [real.attempt_id]


class TestDeleteAllAttempts(object):
    def test_purges_attempts_and_grades(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        test_quiz: Quiz,
        attempt_factory: t.Callable[..., Attempt],
        grade_factory: t.Callable[..., GradeRecord],
        gradebook: RecordingGradebook,
    ) -> None:
        """Previews and in-progress attempts go too; other quizzes are untouched."""
        other = quiz_factory(name="Other")
        user_id = UserID()
        attempt_factory(user_id=user_id, sum_grades=6.0)
        attempt_factory(user_id=user_id, state=AttemptState.InProgress)
        attempt_factory(is_preview=True)
        grade_factory(user_id, 6.0)
        kept = attempt_factory(quiz=other, user_id=user_id, sum_grades=2.0)
        grade_factory(user_id, 2.0, quiz=other)

        with db_session.begin():
            deleted = attempt_service.delete_all_attempts(test_quiz, session=db_session, gradebook=gradebook)
            remaining = attempt_storage.find(quiz_id=test_quiz.quiz_id, session=db_session)
            grades = grade_storage.find(quiz_id=test_quiz.quiz_id, session=db_session)
            other_attempts = attempt_storage.find(quiz_id=other.quiz_id, session=db_session)
            other_grade = grade_storage.get(other.quiz_id, user_id, session=db_session)

        assert deleted == 3
        assert remaining == ()
        assert grades == ()
        assert gradebook.latest == {user_id: None}
        assert [a.attempt_id for a in other_attempts] == [kept.attempt_id]
        assert other_grade is not None and other_grade.grade == pytest.approx(2.0)

    def test_nothing_to_purge(
        self, db_session: Session, test_quiz: Quiz, gradebook: RecordingGradebook
    ) -> None:
        with db_session.begin():
            deleted = attempt_service.delete_all_attempts(test_quiz, session=db_session, gradebook=gradebook)

        assert deleted == 0
        assert gradebook.pushed == []


class TestUpdateOpenAttempts(object):
    def test_writes_changed_only(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        attempt_factory: t.Callable[..., Attempt],
        override_factory: t.Callable[..., QuizOverride],
    ) -> None:
        quiz = quiz_factory(time_close=50_000)
        current = attempt_factory(quiz=quiz, state=AttemptState.InProgress, time_start=1000, time_check_state=50_000)
        user_id = UserID()
        stale = attempt_factory(
            quiz=quiz, user_id=user_id, state=AttemptState.InProgress, time_start=1000, time_check_state=50_000
        )
        override_factory(quiz=quiz, user_id=user_id, time_close=60_000)

        with db_session.begin():
            updated = attempt_service.update_open_attempts(quiz_id=quiz.quiz_id, session=db_session)
            refreshed = attempt_storage.get(stale.attempt_id, session=db_session)
            untouched = attempt_storage.get(current.attempt_id, session=db_session)

        assert updated == 1
        assert refreshed is not None and refreshed.time_check_state == 60_000
        assert untouched is not None and untouched.time_check_state == 50_000
