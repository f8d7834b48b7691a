from .entity import Entity
from .submission import Submission

__all__ = [
    "Entity",
    "Submission",
]
