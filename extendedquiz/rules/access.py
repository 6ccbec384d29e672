"""
Override resolution: user override > lenient combination of group
overrides > quiz default, decided independently for every field
"""

from __future__ import annotations

import logging
import typing as t

from extendedquiz.model import EffectiveAccess, GroupID, Quiz, QuizOverride, UserID

from .errors import PreconditionViolation

logger = logging.getLogger(__name__)

T = t.TypeVar("T")

Combine = t.Callable[[list[T]], T]

OVERRIDE_FIELDS = ("time_open", "time_close", "time_limit", "max_attempts", "password")


def earliest(values: list[int]) -> int:
    return min(values)


def unlimited_or_latest(values: list[int]) -> int:
    """0 means "no limit" and beats any real value"""
    if 0 in values:
        return 0
    return max(values)


def first_defined(values: list[str]) -> str:
    return values[0]


STRATEGIES: dict[str, Combine[t.Any]] = {
    "time_open": earliest,
    "time_close": unlimited_or_latest,
    "time_limit": unlimited_or_latest,
    "max_attempts": unlimited_or_latest,
    "password": first_defined,
}


def resolve_field(
    field: str,
    default: T,
    user_override: QuizOverride | None,
    group_overrides: t.Sequence[QuizOverride],
    combine: Combine[T],
) -> T:
    """Pick the user's value if defined, else combine the groups' defined values, else the default"""
    if user_override is not None:
        value = getattr(user_override, field)
        if value is not None:
            return value
    defined = [v for v in (getattr(o, field) for o in group_overrides) if v is not None]
    if defined:
        return combine(defined)
    return default


def check_override(override: QuizOverride) -> None:
    if (override.user_id is None) == (override.group_id is None):
        raise PreconditionViolation(
            f"override {override.override_id} must target exactly one of user_id or group_id"
        )


def select_overrides(
    quiz: Quiz,
    user_id: UserID,
    group_ids: t.Collection[GroupID],
    overrides: t.Iterable[QuizOverride],
) -> tuple[QuizOverride | None, list[QuizOverride]]:
    user_override: QuizOverride | None = None
    group_overrides: list[QuizOverride] = []
    for override in overrides:
        check_override(override)
        if override.quiz_id != quiz.quiz_id:
            continue
        if override.is_user_override:
            if override.user_id == user_id:
                user_override = override
        elif override.group_id in group_ids:
            group_overrides.append(override)
    return user_override, group_overrides


def resolve_effective_access(
    quiz: Quiz,
    user_id: UserID,
    group_ids: t.Collection[GroupID],
    overrides: t.Iterable[QuizOverride],
) -> EffectiveAccess:
    user_override, group_overrides = select_overrides(quiz, user_id, group_ids, overrides)

    resolved = {
        field: resolve_field(field, getattr(quiz, field), user_override, group_overrides, STRATEGIES[field])
        for field in OVERRIDE_FIELDS
    }

    # any password set on a group must also be accepted
    extra_passwords: list[str] = []
    if user_override is None or user_override.password is None:
        for override in group_overrides:
            pw = override.password
            if pw is not None and pw != resolved["password"] and pw not in extra_passwords:
                extra_passwords.append(pw)

    logger.debug(
        "resolved effective access",
        extra={
            "quiz_id": quiz.quiz_id,
            "user_id": user_id,
            "user_override": user_override.override_id if user_override else None,
            "group_overrides": [o.override_id for o in group_overrides],
        },
    )
    return EffectiveAccess(**resolved, extra_passwords=tuple(extra_passwords))


def attempt_allowed(access: EffectiveAccess, finished_count: int) -> bool:
    """Whether another attempt may be started; max_attempts of 0 is unlimited"""
    if access.max_attempts == 0:
        return True
    return finished_count < access.max_attempts
