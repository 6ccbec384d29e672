__all__ = ["NotSet"]

from .sentinel import NotSet
