"""Binary asset uploads to Supabase Storage."""

import logging
from typing import Any

import httpx
from supabase import AsyncClient, StorageException

from src.shots.config import settings
from src.shots.services.storage.exceptions import UploadFailedError

logger = logging.getLogger(__name__)


class AssetStorage:
    """Uploads user assets (photos, masks) into a storage bucket."""

    def __init__(self, client: AsyncClient, bucket: str | None = None) -> None:
        """
        Initialize asset storage.

        Args:
            client: Async Supabase client
            bucket: Bucket name (defaults to ``settings.storage_bucket``)
        """
        self.client = client
        self.bucket = bucket or settings.storage_bucket

    async def upload(
        self,
        data: bytes,
        path: str,
        metadata: dict[str, Any] | None = None,
        content_type: str | None = None,
    ) -> str:
        """
        Upload bytes to ``path`` inside the bucket.

        Args:
            data: File content
            path: Path within the bucket (e.g. "user_id/shot.jpg")
            metadata: Custom metadata stored with the object
            content_type: MIME type (optional)

        Returns:
            Public URL of the uploaded object

        Raises:
            UploadFailedError: If the upload fails for any reason

        Example:
            >>> storage = AssetStorage(client)
            >>> url = await storage.upload(jpeg_bytes, f"{user.id}/shot.jpg", content_type="image/jpeg")
        """
        file_options: dict[str, Any] = {}
        if content_type:
            file_options["content-type"] = content_type
        if metadata:
            file_options["metadata"] = metadata

        bucket = self.client.storage.from_(self.bucket)
        try:
            await bucket.upload(path=path, file=data, file_options=file_options)
            return await bucket.get_public_url(path)
        except (StorageException, httpx.HTTPError) as e:
            logger.error(f"Upload of {self.bucket}/{path} failed: {e}")
            raise UploadFailedError(f"Failed to upload {path}") from e
