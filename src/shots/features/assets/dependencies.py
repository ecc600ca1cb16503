"""FastAPI dependency exposing the asset storage."""

from src.shots.services.storage import AssetStorage

# Global instance (initialized in main.py lifespan)
_asset_storage: AssetStorage | None = None


def set_asset_storage(storage: AssetStorage | None) -> None:
    global _asset_storage
    _asset_storage = storage


def get_asset_storage() -> AssetStorage:
    """
    Get the global asset storage.

    Raises:
        RuntimeError: If asset storage is not initialized
    """
    if _asset_storage is None:
        raise RuntimeError(
            "Asset storage not initialized. Ensure application startup calls set_asset_storage()."
        )
    return _asset_storage
