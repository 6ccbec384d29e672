from __future__ import annotations

import extendedquiz.lib.cli as click
from extendedquiz import service
from extendedquiz.core import di
from extendedquiz.model import GroupID, QuizID, UserID
from extendedquiz.storage import Session


@click.group("attempt")
def attempt():
    """Maintain quiz attempts."""
    ...


@attempt.command("update-open")
@click.option("--quiz", "quiz_id", type=click.KeyParamType(QuizID), default=None)
@click.option("--user", "user_id", type=click.KeyParamType(UserID), default=None)
@click.option("--group", "group_id", type=click.KeyParamType(GroupID), default=None)
@di.inject
def update_open(
    quiz_id: QuizID | None,
    user_id: UserID | None,
    group_id: GroupID | None,
    session: Session = di.Provide["storage.persistent.session"],
):
    """Recompute when open attempts next need their state checked."""
    with session.begin():
        updated = service.attempt.update_open_attempts(
            quiz_id=quiz_id, user_id=user_id, group_id=group_id, session=session
        )
    click.echo(f"{updated} attempt(s) updated.")
