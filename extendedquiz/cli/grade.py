from __future__ import annotations

import extendedquiz.lib.cli as click
import extendedquiz.storage as storage
from extendedquiz import service
from extendedquiz.core import di
from extendedquiz.model import GradeAction, QuizID
from extendedquiz.rules import format_grade
from extendedquiz.storage import Session


@click.group("grade")
def grade():
    """Inspect and recompute final grades."""
    ...


@grade.command("show")
@click.argument("quiz_id", type=click.KeyParamType(QuizID))
@di.inject
def show(quiz_id: QuizID, session: Session = di.Provide["storage.persistent.session"]):
    """List the final grade of every user of a quiz."""
    with session.begin():
        quiz = storage.quiz.get(quiz_id, session=session)
        if quiz is None:
            click.echo(f"Quiz {quiz_id} not found", err=True)
            raise SystemExit(1)
        records = storage.grade.find(quiz_id=quiz_id, session=session)

    click.echo(f"{quiz.name} ({quiz.grade_method.value}, out of {format_grade(quiz, quiz.max_grade)})")
    if not records:
        click.echo("No grades.")
        return
    for record in records:
        click.echo(f"  {record.user_id}  {format_grade(quiz, record.grade)}")


@grade.command("recompute")
@click.argument("quiz_id", type=click.KeyParamType(QuizID))
@click.option("--push/--no-push", default=True, help="Send changed grades to the gradebook")
@di.inject
def recompute(quiz_id: QuizID, push: bool, session: Session = di.Provide["storage.persistent.session"]):
    """Recompute every user's final grade and write back the differences."""
    with session.begin():
        quiz = storage.quiz.get(quiz_id, session=session)
        if quiz is None:
            click.echo(f"Quiz {quiz_id} not found", err=True)
            raise SystemExit(1)
        if push:
            changes = service.grading.update_all_final_grades(quiz, session=session)
        else:
            _, changes = service.grading.recompute_all_final_grades(quiz, session=session)

    if not changes:
        click.echo("All grades up to date.")
        return
    for change in changes:
        match change.action:
            case GradeAction.Insert:
                click.echo(f"  + {change.user_id}  {format_grade(quiz, change.new_grade)}")
            case GradeAction.Update:
                click.echo(
                    f"  ~ {change.user_id}  {format_grade(quiz, change.old_grade)} -> "
                    f"{format_grade(quiz, change.new_grade)}"
                )
            case GradeAction.Delete:
                click.echo(f"  - {change.user_id}  {format_grade(quiz, change.old_grade)}")
    click.echo(f"{len(changes)} grade(s) changed.")
