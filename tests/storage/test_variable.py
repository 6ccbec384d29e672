"""Tests for extendedquiz.storage.variable module."""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from extendedquiz.model import ConcatVarID, Quiz, VarBinding, VarID
from extendedquiz.storage import variable as variable_storage


class TestVars(object):
    def test_create_and_get(self, db_session: Session, test_quiz: Quiz) -> None:
        with db_session.begin():
            var = variable_storage.create_var(
                {"quiz_id": test_quiz.quiz_id, "name": "x", "nvalues": 2, "maximum": 4.0}, session=db_session
            )
            stored = variable_storage.get_var(var.var_id, session=db_session)

        assert stored == var
        assert isinstance(stored.var_id, VarID)
        assert stored.value_increment == 1.0

    def test_create_rejects_bad_range(self, db_session: Session, test_quiz: Quiz) -> None:
        with db_session.begin():
            with pytest.raises(ValueError):
                variable_storage.create_var(
                    {"quiz_id": test_quiz.quiz_id, "name": "x", "minimum": 2.0, "maximum": 1.0}, session=db_session
                )

    def test_update_missing(self, db_session: Session) -> None:
        with db_session.begin():
            with pytest.raises(KeyError):
                variable_storage.update_var(VarID(), nvalues=2, session=db_session)


class TestConcatVars(object):
    def test_var_names_round_trip(self, db_session: Session, test_quiz: Quiz) -> None:
        with db_session.begin():
            concat = variable_storage.create_concat_var(
                {"quiz_id": test_quiz.quiz_id, "name": "xy", "readable_name": "xy", "var_names": ["x", "y"]},
                session=db_session,
            )
            variable_storage.update_concat_var(concat.concat_var_id, var_names=["y", "x"], session=db_session)
            stored = variable_storage.get_concat_var(concat.concat_var_id, session=db_session)

        assert stored is not None and stored.var_names == ["y", "x"]

    def test_delete_drops_bindings(self, db_session: Session, test_quiz: Quiz) -> None:
        with db_session.begin():
            concat = variable_storage.create_concat_var(
                {"quiz_id": test_quiz.quiz_id, "name": "xy", "readable_name": "xy"}, session=db_session
            )
            variable_storage.bind(
                VarBinding(quiz_id=test_quiz.quiz_id, arg_id="arg-1", concat_var_id=concat.concat_var_id),
                session=db_session,
            )
            deleted = variable_storage.delete_concat_var(concat.concat_var_id, session=db_session)
            binding = variable_storage.get_binding(test_quiz.quiz_id, "arg-1", session=db_session)

        assert deleted
        assert binding is None


class TestBindings(object):
    def test_binding_needs_one_target(self, test_quiz: Quiz) -> None:
        with pytest.raises(ValueError):
            VarBinding(quiz_id=test_quiz.quiz_id, arg_id="arg-1", var_id=VarID(), concat_var_id=ConcatVarID())
        with pytest.raises(ValueError):
            VarBinding(quiz_id=test_quiz.quiz_id, arg_id="arg-1")

    def test_unbind(self, db_session: Session, test_quiz: Quiz) -> None:
        with db_session.begin():
            var = variable_storage.create_var({"quiz_id": test_quiz.quiz_id, "name": "x"}, session=db_session)
            variable_storage.bind(
                VarBinding(quiz_id=test_quiz.quiz_id, arg_id="arg-1", var_id=var.var_id), session=db_session
            )
            assert variable_storage.unbind(test_quiz.quiz_id, "arg-1", session=db_session)
            assert not variable_storage.unbind(test_quiz.quiz_id, "arg-1", session=db_session)
