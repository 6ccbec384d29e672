from __future__ import annotations

from extendedquiz.model import GradeVisibility, Quiz, ReviewTime


def grade_item_visibility(quiz: Quiz) -> GradeVisibility:
    """
    Gradebook visibility of a quiz's grade item, following when marks may be
    reviewed:

    - marks shown neither later while open nor after close: hidden
    - marks shown only after close: hidden until the close date (hidden
      outright without one)
    - otherwise: visible, unless the quiz itself is hidden
    """
    while_open = bool(quiz.review_marks & ReviewTime.LaterWhileOpen)
    after_close = bool(quiz.review_marks & ReviewTime.AfterClose)

    if not while_open and not after_close:
        return GradeVisibility(hidden=True)
    if not while_open:
        if quiz.time_close:
            return GradeVisibility(hidden=True, hidden_until=quiz.time_close)
        return GradeVisibility(hidden=True)
    return GradeVisibility(hidden=not quiz.visible)
