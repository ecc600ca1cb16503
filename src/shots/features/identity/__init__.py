"""Identity reconciliation: session, profile document and user cache."""

from src.shots.features.identity.dependencies import (
    get_identity_flow,
    get_preferences,
    set_identity_flow,
    set_preferences,
)
from src.shots.features.identity.flow import IdentityReconciliationFlow
from src.shots.features.identity.handlers import router
from src.shots.features.identity.user_client import UserClient, UserProfileCache

__all__ = [
    "IdentityReconciliationFlow",
    "UserClient",
    "UserProfileCache",
    "get_identity_flow",
    "get_preferences",
    "router",
    "set_identity_flow",
    "set_preferences",
]
