"""Analytics integrations."""

from src.shots.services.analytics.posthog import PostHogService

__all__ = ["PostHogService"]
