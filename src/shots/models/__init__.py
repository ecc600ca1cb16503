"""Domain models shared across features."""

from src.shots.models.session import Absent, DocumentState, Exists, Session
from src.shots.models.user import User

__all__ = [
    "Absent",
    "DocumentState",
    "Exists",
    "Session",
    "User",
]
