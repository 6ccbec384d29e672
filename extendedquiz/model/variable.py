import typing as t

import pydantic as p

from .base import BaseModel
from .id import ConcatVarID, QuizID, VarID


class QuizVar(BaseModel):
    """
    A random variable shared by the questions of a quiz: nvalues values
    drawn from [minimum, maximum] in steps of value_increment
    """

    var_id: VarID
    quiz_id: QuizID
    name: str

    nvalues: int = 1
    minimum: float = 0.0
    maximum: float = 0.0
    value_increment: float = 1.0

    @p.model_validator(mode="after")
    def check_range(self) -> t.Self:
        if self.nvalues < 1:
            raise ValueError(f"variable {self.name} needs at least one value")
        if self.minimum > self.maximum:
            raise ValueError(f"variable {self.name} has minimum above maximum")
        return self


class ConcatVar(BaseModel):
    """Several quiz variables joined into one value, referenced by name"""

    concat_var_id: ConcatVarID
    quiz_id: QuizID
    name: str
    readable_name: str
    var_names: list[str] = p.Field(default_factory=list)


class VarBinding(BaseModel):
    """
    Binds a question argument to a quiz variable or a concatenated
    variable; a quiz holds at most one binding per argument
    """

    quiz_id: QuizID
    arg_id: str
    var_id: VarID | None = None
    concat_var_id: ConcatVarID | None = None

    @p.model_validator(mode="after")
    def check_target(self) -> t.Self:
        if (self.var_id is None) == (self.concat_var_id is None):
            raise ValueError("binding must name exactly one of var_id or concat_var_id")
        return self
