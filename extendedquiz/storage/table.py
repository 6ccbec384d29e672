import datetime

from sqlalchemy import ForeignKey, func, JSON, MetaData, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass

from extendedquiz.model import AttemptID, ConcatVarID, GroupID, OverrideID, QuizID, UserID, VarID

from .type import ShortUUIDKeyType

metadata = MetaData()


class base(MappedAsDataclass, DeclarativeBase):
    metadata = metadata
    type_annotation_map = {
        QuizID: ShortUUIDKeyType(QuizID),
        UserID: ShortUUIDKeyType(UserID),
        GroupID: ShortUUIDKeyType(GroupID),
        OverrideID: ShortUUIDKeyType(OverrideID),
        AttemptID: ShortUUIDKeyType(AttemptID),
        VarID: ShortUUIDKeyType(VarID),
        ConcatVarID: ShortUUIDKeyType(ConcatVarID),
    }


class quizzes(base):
    __tablename__ = "quizzes"

    quiz_id: Mapped[QuizID] = mapped_column(primary_key=True)
    name: Mapped[str]

    time_open: Mapped[int] = mapped_column(default=0)
    time_close: Mapped[int] = mapped_column(default=0)
    time_limit: Mapped[int] = mapped_column(default=0)
    max_attempts: Mapped[int] = mapped_column(default=0)
    password: Mapped[str] = mapped_column(default="")
    grace_period: Mapped[int] = mapped_column(default=0)

    grade_method: Mapped[str] = mapped_column(default="highest")
    max_grade: Mapped[float] = mapped_column(default=10.0)
    sum_grades: Mapped[float] = mapped_column(default=0.0)
    decimal_points: Mapped[int] = mapped_column(default=2)
    question_decimal_points: Mapped[int] = mapped_column(default=-1)

    review_marks: Mapped[int] = mapped_column(default=0)
    visible: Mapped[bool] = mapped_column(default=True)

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class quiz_overrides(base):
    __tablename__ = "quiz_overrides"
    __table_args__ = (
        UniqueConstraint("quiz_id", "user_id"),
        UniqueConstraint("quiz_id", "group_id"),
    )

    override_id: Mapped[OverrideID] = mapped_column(primary_key=True)
    quiz_id: Mapped[QuizID] = mapped_column(ForeignKey("quizzes.quiz_id"))
    user_id: Mapped[UserID | None] = mapped_column(default=None, index=True)
    group_id: Mapped[GroupID | None] = mapped_column(default=None, index=True)

    time_open: Mapped[int | None] = mapped_column(default=None)
    time_close: Mapped[int | None] = mapped_column(default=None)
    time_limit: Mapped[int | None] = mapped_column(default=None)
    max_attempts: Mapped[int | None] = mapped_column(default=None)
    password: Mapped[str | None] = mapped_column(default=None)

    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())


class quiz_attempts(base):
    __tablename__ = "quiz_attempts"
    __table_args__ = (UniqueConstraint("quiz_id", "user_id", "attempt_number"),)

    attempt_id: Mapped[AttemptID] = mapped_column(primary_key=True)
    quiz_id: Mapped[QuizID] = mapped_column(ForeignKey("quizzes.quiz_id"))
    user_id: Mapped[UserID] = mapped_column(index=True)
    attempt_number: Mapped[int]

    state: Mapped[str] = mapped_column(default="inprogress")
    sum_grades: Mapped[float | None] = mapped_column(default=None)
    is_preview: Mapped[bool] = mapped_column(default=False)

    time_start: Mapped[int] = mapped_column(default=0)
    time_finish: Mapped[int] = mapped_column(default=0)
    time_check_state: Mapped[int | None] = mapped_column(default=None, index=True)


class quiz_grades(base):
    __tablename__ = "quiz_grades"

    quiz_id: Mapped[QuizID] = mapped_column(ForeignKey("quizzes.quiz_id"), primary_key=True)
    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    grade: Mapped[float]
    time_modified: Mapped[int]


class group_memberships(base):
    __tablename__ = "group_memberships"

    group_id: Mapped[GroupID] = mapped_column(primary_key=True)
    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())


class quiz_vars(base):
    __tablename__ = "quiz_vars"
    __table_args__ = (UniqueConstraint("quiz_id", "name"),)

    var_id: Mapped[VarID] = mapped_column(primary_key=True)
    quiz_id: Mapped[QuizID] = mapped_column(ForeignKey("quizzes.quiz_id"))
    name: Mapped[str]

    nvalues: Mapped[int] = mapped_column(default=1)
    minimum: Mapped[float] = mapped_column(default=0.0)
    maximum: Mapped[float] = mapped_column(default=0.0)
    value_increment: Mapped[float] = mapped_column(default=1.0)


class quiz_concat_vars(base):
    __tablename__ = "quiz_concat_vars"
    __table_args__ = (UniqueConstraint("quiz_id", "name"),)

    concat_var_id: Mapped[ConcatVarID] = mapped_column(primary_key=True)
    quiz_id: Mapped[QuizID] = mapped_column(ForeignKey("quizzes.quiz_id"))
    name: Mapped[str]
    readable_name: Mapped[str]
    var_names: Mapped[list[str]] = mapped_column(JSON, default_factory=list)


class quiz_var_args(base):
    __tablename__ = "quiz_var_args"

    quiz_id: Mapped[QuizID] = mapped_column(ForeignKey("quizzes.quiz_id"), primary_key=True)
    arg_id: Mapped[str] = mapped_column(primary_key=True)
    var_id: Mapped[VarID | None] = mapped_column(ForeignKey("quiz_vars.var_id"), default=None)
    concat_var_id: Mapped[ConcatVarID | None] = mapped_column(
        ForeignKey("quiz_concat_vars.concat_var_id"), default=None, index=True
    )
