from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from extendedquiz.core import di
from extendedquiz.lib import NotSet
from extendedquiz.model import ConcatVar, ConcatVarID, QuizID, QuizVar, VarBinding, VarID

from . import Session
from .table import quiz_concat_vars, quiz_var_args, quiz_vars


def get_var(var_id: VarID, *, session: Session = di.Provide["storage.persistent.session"]) -> QuizVar | None:
    stmt = sqla.select(quiz_vars.__table__).where(quiz_vars.var_id == var_id)
    row = session.execute(stmt).mappings().one_or_none()
    return QuizVar(**row) if row else None


def find_vars(quiz_id: QuizID, *, session: Session = di.Provide["storage.persistent.session"]) -> tuple[QuizVar, ...]:
    stmt = sqla.select(quiz_vars.__table__).where(quiz_vars.quiz_id == quiz_id).order_by(quiz_vars.name)
    rows = session.execute(stmt).mappings().all()
    return tuple(QuizVar(**row) for row in rows)


def create_var(params: VarCreateParams, *, session: Session = di.Provide["storage.persistent.session"]) -> QuizVar:
    var = QuizVar(var_id=VarID(), **params)
    values = {field: getattr(var, field) for field in QuizVar.model_fields}
    session.execute(sqla.insert(quiz_vars).values(**values))
    session.flush()
    return var


def update_var(
    var_id: VarID,
    *,
    nvalues: int | NotSet = NotSet(),
    minimum: float | NotSet = NotSet(),
    maximum: float | NotSet = NotSet(),
    value_increment: float | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """
    Raises:
        KeyError: If var_id does not correspond to a variable
    """
    given = {
        "nvalues": nvalues,
        "minimum": minimum,
        "maximum": maximum,
        "value_increment": value_increment,
    }
    values: dict[str, t.Any] = {k: v for k, v in given.items() if not isinstance(v, NotSet)}
    if not values:
        values["var_id"] = var_id
    stmt = sqla.update(quiz_vars).where(quiz_vars.var_id == var_id).values(**values)

    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Variable {var_id} not found")

    session.flush()


def get_concat_var(
    concat_var_id: ConcatVarID, *, session: Session = di.Provide["storage.persistent.session"]
) -> ConcatVar | None:
    stmt = sqla.select(quiz_concat_vars.__table__).where(quiz_concat_vars.concat_var_id == concat_var_id)
    row = session.execute(stmt).mappings().one_or_none()
    return ConcatVar(**row) if row else None


def find_concat_vars(
    quiz_id: QuizID, *, session: Session = di.Provide["storage.persistent.session"]
) -> tuple[ConcatVar, ...]:
    stmt = (
        sqla
        .select(quiz_concat_vars.__table__)
        .where(quiz_concat_vars.quiz_id == quiz_id)
        .order_by(quiz_concat_vars.name)
    )
    rows = session.execute(stmt).mappings().all()
    return tuple(ConcatVar(**row) for row in rows)


def create_concat_var(
    params: ConcatVarCreateParams, *, session: Session = di.Provide["storage.persistent.session"]
) -> ConcatVar:
    concat_var = ConcatVar(concat_var_id=ConcatVarID(), **params)
    values = {field: getattr(concat_var, field) for field in ConcatVar.model_fields}
    session.execute(sqla.insert(quiz_concat_vars).values(**values))
    session.flush()
    return concat_var


def update_concat_var(
    concat_var_id: ConcatVarID,
    *,
    readable_name: str | NotSet = NotSet(),
    var_names: t.Sequence[str] | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """
    Raises:
        KeyError: If concat_var_id does not correspond to a concatenated variable
    """
    values: dict[str, t.Any] = {}
    if not isinstance(readable_name, NotSet):
        values["readable_name"] = readable_name
    if not isinstance(var_names, NotSet):
        values["var_names"] = list(var_names)

    if not values:
        values["concat_var_id"] = concat_var_id
    stmt = (
        sqla
        .update(quiz_concat_vars)
        .where(quiz_concat_vars.concat_var_id == concat_var_id)
        .values(**values)
    )

    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Concatenated variable {concat_var_id} not found")

    session.flush()


def delete_concat_var(
    concat_var_id: ConcatVarID, *, session: Session = di.Provide["storage.persistent.session"]
) -> bool:
    """Delete a concatenated variable along with the bindings that use it"""
    session.execute(sqla.delete(quiz_var_args).where(quiz_var_args.concat_var_id == concat_var_id))
    stmt = sqla.delete(quiz_concat_vars).where(quiz_concat_vars.concat_var_id == concat_var_id)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]


def get_binding(
    quiz_id: QuizID, arg_id: str, *, session: Session = di.Provide["storage.persistent.session"]
) -> VarBinding | None:
    stmt = sqla.select(quiz_var_args.__table__).where(
        quiz_var_args.quiz_id == quiz_id, quiz_var_args.arg_id == arg_id
    )
    row = session.execute(stmt).mappings().one_or_none()
    return VarBinding(**row) if row else None


def find_bindings(
    quiz_id: QuizID, *, session: Session = di.Provide["storage.persistent.session"]
) -> tuple[VarBinding, ...]:
    stmt = sqla.select(quiz_var_args.__table__).where(quiz_var_args.quiz_id == quiz_id).order_by(quiz_var_args.arg_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(VarBinding(**row) for row in rows)


def bind(binding: VarBinding, *, session: Session = di.Provide["storage.persistent.session"]) -> None:
    values = {field: getattr(binding, field) for field in VarBinding.model_fields}
    session.execute(sqla.insert(quiz_var_args).values(**values))
    session.flush()


def unbind(quiz_id: QuizID, arg_id: str, *, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    stmt = sqla.delete(quiz_var_args).where(quiz_var_args.quiz_id == quiz_id, quiz_var_args.arg_id == arg_id)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]


def delete_all(quiz_id: QuizID, *, session: Session = di.Provide["storage.persistent.session"]) -> int:
    """Delete the quiz's bindings, concatenated variables and variables; returns the number of variables"""
    session.execute(sqla.delete(quiz_var_args).where(quiz_var_args.quiz_id == quiz_id))
    session.execute(sqla.delete(quiz_concat_vars).where(quiz_concat_vars.quiz_id == quiz_id))
    result = session.execute(sqla.delete(quiz_vars).where(quiz_vars.quiz_id == quiz_id))
    return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]


class VarCreateParams(t.TypedDict, total=False):
    quiz_id: t.Required[QuizID]
    name: t.Required[str]
    nvalues: int
    minimum: float
    maximum: float
    value_increment: float


class ConcatVarCreateParams(t.TypedDict, total=False):
    quiz_id: t.Required[QuizID]
    name: t.Required[str]
    readable_name: t.Required[str]
    var_names: list[str]
