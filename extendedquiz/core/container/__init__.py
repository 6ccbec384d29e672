__all__ = ["BootConfiguration", "ExtendedQuizContainer", "PersistentContainer", "StorageContainer"]

from .extendedquiz import BootConfiguration, ExtendedQuizContainer
from .storage import PersistentContainer, StorageContainer
