from __future__ import annotations

import datetime

import extendedquiz.lib.cli as click
import extendedquiz.storage as storage
from extendedquiz import service
from extendedquiz.core import di
from extendedquiz.model import AttemptState, QuizID, UserID
from extendedquiz.storage import Session


def _when(ts: int) -> str:
    if ts == 0:
        return "-"
    return datetime.datetime.fromtimestamp(ts, tz=datetime.timezone.utc).isoformat()


@click.group("access")
def access():
    """Inspect resolved quiz access."""
    ...


@access.command("show")
@click.argument("quiz_id", type=click.KeyParamType(QuizID))
@click.argument("user_id", type=click.KeyParamType(UserID))
@di.inject
def show(quiz_id: QuizID, user_id: UserID, session: Session = di.Provide["storage.persistent.session"]):
    """Show the access a user gets to a quiz once overrides are applied."""
    with session.begin():
        quiz = storage.quiz.get(quiz_id, session=session)
        if quiz is None:
            click.echo(f"Quiz {quiz_id} not found", err=True)
            raise SystemExit(1)
        effective = service.access.effective_access(quiz, user_id, session=session)
        finished = storage.attempt.count(
            quiz_id=quiz_id,
            user_id=user_id,
            states=[AttemptState.Finished],
            is_preview=False,
            session=session,
        )

    click.echo(f"Quiz:          {quiz.name}")
    click.echo(f"Opens:         {_when(effective.time_open)}")
    click.echo(f"Closes:        {_when(effective.time_close)}")
    click.echo(f"Time limit:    {effective.time_limit or 'none'}")
    click.echo(f"Max attempts:  {effective.max_attempts or 'unlimited'} ({finished} used)")
    click.echo(f"Password:      {'yes' if effective.password else 'no'}")
    if effective.extra_passwords:
        click.echo(f"Extra passwords: {len(effective.extra_passwords)}")
