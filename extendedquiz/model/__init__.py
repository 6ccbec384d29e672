__all__ = [
    # Base
    "BaseModel",
    "WithCtime",
    # Enums
    "DeploymentEnvironment",
    # ID Types
    "QuizID",
    "UserID",
    "GroupID",
    "OverrideID",
    "AttemptID",
    "VarID",
    "ConcatVarID",
    # Quiz
    "Quiz",
    "GradeMethod",
    "ReviewTime",
    # Overrides
    "QuizOverride",
    "EffectiveAccess",
    "GradeVisibility",
    # Attempts
    "Attempt",
    "AttemptState",
    # Grades
    "GradeRecord",
    "GradeAction",
    "GradeChange",
    # Groups
    "GroupMembership",
    # Variables
    "QuizVar",
    "ConcatVar",
    "VarBinding",
]

from .access import EffectiveAccess, GradeVisibility
from .attempt import Attempt, AttemptState
from .base import BaseModel, WithCtime
from .enum import DeploymentEnvironment
from .grade import GradeAction, GradeChange, GradeRecord
from .group import GroupMembership
from .id import AttemptID, ConcatVarID, GroupID, OverrideID, QuizID, UserID, VarID
from .override import QuizOverride
from .quiz import GradeMethod, Quiz, ReviewTime
from .variable import ConcatVar, QuizVar, VarBinding
