import enum

from .base import BaseModel
from .id import QuizID, UserID


class GradeRecord(BaseModel):
    quiz_id: QuizID
    user_id: UserID
    grade: float
    time_modified: int


class GradeAction(enum.Enum):
    Insert = "insert"
    Update = "update"
    Delete = "delete"


class GradeChange(BaseModel):
    action: GradeAction
    user_id: UserID
    old_grade: float | None = None
    new_grade: float | None = None
