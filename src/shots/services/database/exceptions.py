"""Custom exceptions for the document store façade."""


class DocumentStoreError(Exception):
    """Base exception for all document store errors.

    Carries a human-readable description. Vendor exceptions are never raised
    past the façade; they are chained as ``__cause__`` instead.
    """

    def __init__(self, description: str = "") -> None:
        super().__init__(description)
        self.description = description


class NotFoundError(DocumentStoreError):
    """Raised when a requested document does not exist."""

    pass


class DecodeError(DocumentStoreError):
    """Raised when a remote document cannot be decoded into its model."""

    pass


class TransientNetworkError(DocumentStoreError):
    """Raised when the store could not be reached (timeouts, dropped connections)."""

    pass


class StoreWriteError(DocumentStoreError):
    """Raised when the store rejects a read, write or delete."""

    pass
