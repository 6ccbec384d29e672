from __future__ import annotations

from extendedquiz.model import Attempt, AttemptState, EffectiveAccess


def compute_time_check_state(attempt: Attempt, access: EffectiveAccess, grace_period: int) -> int | None:
    """
    Next time an open attempt's state has to be re-evaluated: when its time
    limit runs out or the quiz closes, whichever comes first, plus the grace
    period once the attempt is overdue. None when neither applies.
    """
    limit, close = access.time_limit, access.time_close
    if limit == 0 and close == 0:
        return None

    if limit == 0:
        due = close
    elif close == 0:
        due = attempt.time_start + limit
    else:
        due = min(attempt.time_start + limit, close)

    if attempt.state is AttemptState.Overdue:
        due += grace_period
    return due
