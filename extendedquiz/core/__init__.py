__all__ = [
    "BootConfiguration",
    "di",
    "ExtendedQuizContainer",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di
from .config import Secrets, Settings
from .container import BootConfiguration, ExtendedQuizContainer
from .provider import LoggingProvider, TimestampProvider
