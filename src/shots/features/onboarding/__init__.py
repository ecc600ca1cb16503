"""Onboarding flag endpoints."""

from src.shots.features.onboarding.handlers import router

__all__ = ["router"]
