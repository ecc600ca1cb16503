"""User profile model and its document mapping."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.shots.services.database.exceptions import DecodeError


class User(BaseModel):
    """
    Profile of a signed-in principal, stored in the ``users`` collection.

    The document key is ``id``, which is always the identity provider's
    principal id. Two users compare equal when their ids match, regardless
    of the remaining fields.

    Attributes:
        id: Provider principal id (primary key)
        created_at: Timestamp of the first remote write, never overwritten
        email: Optional email address
        name: Optional display name

    Example:
        >>> user = User(id="abc123", created_at=datetime(2024, 1, 11), email="a@example.com")
        >>> user.to_wire()["id"]
        'abc123'
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    created_at: datetime
    email: str | None = None
    name: str | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def to_wire(self) -> dict[str, Any]:
        """
        Convert to the document representation.

        Optional fields that are unset are left out.

        Returns:
            Plain dictionary suitable for the document store
        """
        data: dict[str, Any] = {"id": self.id, "created_at": self.created_at.isoformat()}
        if self.email is not None:
            data["email"] = self.email
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "User":
        """
        Build a User from a stored document.

        Args:
            data: Raw document dictionary

        Returns:
            Decoded User

        Raises:
            DecodeError: If ``id`` or ``created_at`` is missing or malformed
        """
        user_id = data.get("id")
        if not isinstance(user_id, str) or not user_id:
            raise DecodeError(f"User document has no valid id: {data!r}")

        created_at = data.get("created_at")
        if isinstance(created_at, str):
            try:
                created_at = datetime.fromisoformat(created_at)
            except ValueError as e:
                raise DecodeError(f"User {user_id} has malformed created_at: {created_at}") from e
        if not isinstance(created_at, datetime):
            raise DecodeError(f"User {user_id} is missing created_at")

        return cls(
            id=user_id,
            created_at=created_at,
            email=data.get("email"),
            name=data.get("name"),
        )
