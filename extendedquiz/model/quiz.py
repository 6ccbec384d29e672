import enum

import pydantic as p

from .base import BaseModel
from .id import QuizID


class GradeMethod(enum.Enum):
    Highest = "highest"
    Average = "average"
    First = "first"
    Last = "last"


class ReviewTime(enum.IntFlag):
    """
    When a review option is shown; a quiz stores one bitmask per review
    option, and `review_marks` is the one that controls the grade column
    """

    During = 0x10000
    ImmediatelyAfter = 0x01000
    LaterWhileOpen = 0x00100
    AfterClose = 0x00010


class Quiz(BaseModel):
    quiz_id: QuizID
    name: str

    # 0 means "no date" / "unlimited"
    time_open: int = 0
    time_close: int = 0
    time_limit: int = 0
    max_attempts: int = 0
    password: str = ""
    grace_period: int = 0

    grade_method: GradeMethod = GradeMethod.Highest
    max_grade: float = 10.0
    sum_grades: float = 0.0
    decimal_points: int = p.Field(default=2, ge=0)
    question_decimal_points: int = p.Field(default=-1, ge=-1)

    review_marks: int = 0
    visible: bool = True
