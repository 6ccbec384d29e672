"""Quiz variables and the question arguments bound to them."""

from __future__ import annotations

import logging
import typing as t

import extendedquiz.storage as storage
from extendedquiz.core import di
from extendedquiz.model import ConcatVar, Quiz, QuizVar, VarBinding
from extendedquiz.rules import PreconditionViolation
from extendedquiz.storage import Session

logger = logging.getLogger(__name__)


class VarParams(t.TypedDict, total=False):
    nvalues: int
    minimum: float
    maximum: float
    value_increment: float


class ConcatVarParams(t.TypedDict, total=False):
    readable_name: str
    var_names: t.Required[t.Sequence[str]]


def store_vars(
    quiz: Quiz,
    variables: t.Mapping[str, VarParams],
    concat_vars: t.Mapping[str, ConcatVarParams],
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[tuple[QuizVar, ...], tuple[ConcatVar, ...]]:
    """
    Save the variables submitted with the quiz settings. Variables are
    matched by name: known ones are updated, new ones created, and the
    ones not submitted are kept. Concatenated variables not submitted are
    deleted along with their bindings.

    Raises:
        PreconditionViolation: If a concatenated variable names an unknown variable
        ValueError: If a variable's range is invalid
    """
    existing = {v.name: v for v in storage.variable.find_vars(quiz.quiz_id, session=session)}
    known = existing.keys() | variables.keys()
    for name, params in concat_vars.items():
        unknown = [n for n in params["var_names"] if n not in known]
        if unknown:
            raise PreconditionViolation(f"concatenated variable {name} uses unknown variables {unknown}")

    for name, params in variables.items():
        var = existing.get(name)
        if var is None:
            storage.variable.create_var({"quiz_id": quiz.quiz_id, "name": name, **params}, session=session)
        else:
            # validate the merged range before writing
            QuizVar(**{**var.model_dump(), **params})
            storage.variable.update_var(var.var_id, **params, session=session)

    previous = {c.name: c for c in storage.variable.find_concat_vars(quiz.quiz_id, session=session)}
    for name, old in previous.items():
        if name not in concat_vars:
            storage.variable.delete_concat_var(old.concat_var_id, session=session)
            logger.debug("deleted unused concatenated variable", extra={"quiz_id": quiz.quiz_id, "name": name})

    for name, params in concat_vars.items():
        readable_name = params.get("readable_name", name)
        var_names = list(params["var_names"])
        if name in previous:
            storage.variable.update_concat_var(
                previous[name].concat_var_id, readable_name=readable_name, var_names=var_names, session=session
            )
        else:
            storage.variable.create_concat_var(
                {"quiz_id": quiz.quiz_id, "name": name, "readable_name": readable_name, "var_names": var_names},
                session=session,
            )

    stored = storage.variable.find_vars(quiz.quiz_id, session=session)
    stored_concat = storage.variable.find_concat_vars(quiz.quiz_id, session=session)
    logger.info(
        "stored quiz variables",
        extra={
            "quiz_id": quiz.quiz_id,
            "vars": [v.name for v in stored],
            "concat_vars": [c.name for c in stored_concat],
        },
    )
    return stored, stored_concat


def assign_arg(
    quiz: Quiz,
    arg_id: str,
    target: QuizVar | ConcatVar,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> VarBinding:
    """Bind a question argument to a variable of the quiz, replacing its previous binding"""
    if target.quiz_id != quiz.quiz_id:
        raise PreconditionViolation(f"{target.name} belongs to quiz {target.quiz_id}, not {quiz.quiz_id}")

    if isinstance(target, QuizVar):
        binding = VarBinding(quiz_id=quiz.quiz_id, arg_id=arg_id, var_id=target.var_id)
    else:
        binding = VarBinding(quiz_id=quiz.quiz_id, arg_id=arg_id, concat_var_id=target.concat_var_id)

    replaced = storage.variable.unbind(quiz.quiz_id, arg_id, session=session)
    storage.variable.bind(binding, session=session)
    logger.info(
        "assigned argument",
        extra={"quiz_id": quiz.quiz_id, "arg_id": arg_id, "var": target.name, "replaced": replaced},
    )
    return binding
