"""Exceptions raised by the override and grading rules."""


class ExtendedQuizError(Exception):
    """Base class for errors raised by this package."""

    pass


class PreconditionViolation(ExtendedQuizError, ValueError):
    """Caller supplied inconsistent data (e.g. an override that targets both a user and a group)."""

    pass
