"""Collection names and equality queries over them."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Collection(StrEnum):
    """Remote document collections known to the app."""

    USERS = "users"


@dataclass(frozen=True)
class Query:
    """
    Equality predicate over one collection.

    Attributes:
        collection: Collection to search
        filters: Field name to required value; every pair must match
        limit: Maximum number of documents to return (None for all)

    Example:
        >>> Query(Collection.USERS, {"id": "abc123"}, limit=1)
    """

    collection: Collection
    filters: dict[str, Any] = field(default_factory=dict)
    limit: int | None = None

    def matches(self, document: dict[str, Any]) -> bool:
        """Check whether a document satisfies every filter."""
        return all(
            field_name in document and document[field_name] == value
            for field_name, value in self.filters.items()
        )
