"""Asset upload endpoints."""

from src.shots.features.assets.dependencies import get_asset_storage, set_asset_storage
from src.shots.features.assets.handlers import router

__all__ = ["get_asset_storage", "router", "set_asset_storage"]
