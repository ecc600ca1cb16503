"""FastAPI dependencies exposing the running identity flow and preferences."""

from src.shots.features.identity.flow import IdentityReconciliationFlow
from src.shots.services.preferences import PreferencesStore

# Global instances (initialized in main.py lifespan)
_identity_flow: IdentityReconciliationFlow | None = None
_preferences: PreferencesStore | None = None


def set_identity_flow(flow: IdentityReconciliationFlow | None) -> None:
    """
    Set the global identity flow instance.

    Called during application startup, and with None on shutdown.

    Args:
        flow: Started IdentityReconciliationFlow
    """
    global _identity_flow
    _identity_flow = flow


def get_identity_flow() -> IdentityReconciliationFlow:
    """
    Get the global identity flow instance.

    Returns:
        IdentityReconciliationFlow instance

    Raises:
        RuntimeError: If the flow is not initialized
    """
    if _identity_flow is None:
        raise RuntimeError(
            "Identity flow not initialized. "
            "Ensure application startup calls set_identity_flow()."
        )
    return _identity_flow


def set_preferences(preferences: PreferencesStore | None) -> None:
    global _preferences
    _preferences = preferences


def get_preferences() -> PreferencesStore:
    """
    Get the global preferences store.

    Raises:
        RuntimeError: If preferences are not initialized
    """
    if _preferences is None:
        raise RuntimeError(
            "Preferences not initialized. Ensure application startup calls set_preferences()."
        )
    return _preferences
