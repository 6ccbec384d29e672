import importlib
import sys
import types
import typing as t

__all__ = [
    "access",
    "attempt",
    "gradebook",
    "grading",
    "group",
    "notification",
    "override",
    "quiz",
    "variable",
]

if t.TYPE_CHECKING:
    from . import access, attempt, gradebook, grading, group, notification, override, quiz, variable


def __getattr__(name: str) -> types.ModuleType:
    if name in __all__:
        module = importlib.import_module(f"{__name__}.{name}")
        setattr(sys.modules[__name__], name, module)
        return module
    raise AttributeError(f"module {__name__} has no attribute {name}")
