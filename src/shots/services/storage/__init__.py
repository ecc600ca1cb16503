"""Storage module for Supabase Storage operations."""

from src.shots.services.storage.assets import AssetStorage
from src.shots.services.storage.exceptions import UploadFailedError

__all__ = ["AssetStorage", "UploadFailedError"]
