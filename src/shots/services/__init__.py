"""Shared services module for external integrations."""

from src.shots.services.analytics import PostHogService

__all__ = [
    "PostHogService",
]
