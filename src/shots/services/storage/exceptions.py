"""Custom exceptions for asset storage."""


class UploadFailedError(Exception):
    """Raised when an asset could not be uploaded to the storage bucket."""

    pass
