"""API handlers for the onboarding flag."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from src.shots.features.identity.dependencies import get_identity_flow, get_preferences
from src.shots.features.identity.flow import IdentityReconciliationFlow
from src.shots.features.onboarding.models import (
    OnboardingStatusRequest,
    OnboardingStatusResponse,
)
from src.shots.services import PostHogService
from src.shots.services.preferences import PreferencesStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.get("", response_model=OnboardingStatusResponse)
async def get_onboarding_status(
    preferences: PreferencesStore = Depends(get_preferences),
) -> OnboardingStatusResponse:
    """Return whether this device has completed onboarding."""
    return OnboardingStatusResponse(
        has_completed_onboarding=preferences.has_completed_onboarding,
    )


@router.put("", response_model=OnboardingStatusResponse)
async def update_onboarding_status(
    req: OnboardingStatusRequest,
    preferences: PreferencesStore = Depends(get_preferences),
    flow: IdentityReconciliationFlow = Depends(get_identity_flow),
) -> OnboardingStatusResponse:
    """
    Set the onboarding flag.

    Args:
        req: New flag value

    Returns:
        The stored flag

    Raises:
        HTTPException: 500 if the preferences file cannot be written
    """
    try:
        preferences.set_has_completed_onboarding(req.has_completed_onboarding)
    except OSError as e:
        logger.error(f"Error saving onboarding flag: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save onboarding status. Please try again.",
        ) from e

    if req.has_completed_onboarding:
        user = flow.cache.current
        posthog_service = PostHogService()
        posthog_service.capture(
            distinct_id=user.id if user else "anonymous",
            event="onboarding_completed",
            properties={"has_profile": user is not None},
        )

    return OnboardingStatusResponse(
        has_completed_onboarding=preferences.has_completed_onboarding,
    )
