from .base import BaseModel


class EffectiveAccess(BaseModel):
    time_open: int
    time_close: int
    time_limit: int
    max_attempts: int
    password: str
    extra_passwords: tuple[str, ...] = ()


class GradeVisibility(BaseModel):
    hidden: bool
    hidden_until: int | None = None
