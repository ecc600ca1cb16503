"""Session and lookup-result types shared by the identity flow and the store."""

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Session:
    """Live identity-provider session for the current process. Never persisted."""

    provider_user_id: str
    is_anonymous: bool = False
    email: str | None = None


@dataclass(frozen=True)
class Exists(Generic[T]):
    """A lookup matched a document."""

    value: T


@dataclass(frozen=True)
class Absent:
    """A lookup matched nothing."""


DocumentState: TypeAlias = Exists[T] | Absent
