import typing as t

import pydantic as p

from .base import BaseModel
from .id import GroupID, OverrideID, QuizID, UserID


class QuizOverride(BaseModel):
    """
    A per-user or per-group exception to a quiz's access settings. Exactly
    one of user_id/group_id is set. None means the field is not overridden,
    0 is a real value ("no date" / "unlimited").
    """

    override_id: OverrideID
    quiz_id: QuizID
    user_id: UserID | None = None
    group_id: GroupID | None = None

    time_open: int | None = None
    time_close: int | None = None
    time_limit: int | None = None
    max_attempts: int | None = None
    password: str | None = None

    @p.model_validator(mode="after")
    def check_target(self) -> t.Self:
        if (self.user_id is None) == (self.group_id is None):
            raise ValueError("override must target exactly one of user_id or group_id")
        return self

    @property
    def is_user_override(self) -> bool:
        return self.user_id is not None
