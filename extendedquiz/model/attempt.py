import enum

from .base import BaseModel
from .id import AttemptID, QuizID, UserID


class AttemptState(enum.Enum):
    InProgress = "inprogress"
    Overdue = "overdue"
    Finished = "finished"
    Abandoned = "abandoned"


class Attempt(BaseModel):
    attempt_id: AttemptID
    quiz_id: QuizID
    user_id: UserID
    attempt_number: int

    state: AttemptState = AttemptState.InProgress
    sum_grades: float | None = None
    is_preview: bool = False

    time_start: int = 0
    time_finish: int = 0
    time_check_state: int | None = None

    @property
    def is_open(self) -> bool:
        return self.state in (AttemptState.InProgress, AttemptState.Overdue)
