"""Pydantic models for onboarding feature."""

from pydantic import BaseModel, Field


class OnboardingStatusRequest(BaseModel):
    """Request model for updating the onboarding flag."""

    has_completed_onboarding: bool = Field(description="Whether onboarding is finished")


class OnboardingStatusResponse(BaseModel):
    """Response model for the onboarding flag."""

    has_completed_onboarding: bool
