"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from src.shots.config import settings
from src.shots.features.assets import router as assets_router
from src.shots.features.assets import set_asset_storage
from src.shots.features.identity import (
    IdentityReconciliationFlow,
    UserClient,
    set_identity_flow,
    set_preferences,
)
from src.shots.features.identity import router as identity_router
from src.shots.features.onboarding import router as onboarding_router
from src.shots.services import PostHogService
from src.shots.services.auth import SupabaseIdentityProvider
from src.shots.services.database import DocumentStore
from src.shots.services.database.connection import (
    get_supabase_admin_client,
    get_supabase_client,
)
from src.shots.services.database.supabase_backend import SupabaseDocumentBackend
from src.shots.services.preferences import PreferencesStore
from src.shots.services.storage import AssetStorage

logger = logging.getLogger(__name__)

# Global flow instance for cleanup
_identity_flow: IdentityReconciliationFlow | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    global _identity_flow

    # Startup
    try:
        logger.info("Initializing identity flow")

        client = await get_supabase_client()
        admin_client = await get_supabase_admin_client()

        store = DocumentStore(SupabaseDocumentBackend(client))
        provider = SupabaseIdentityProvider(client, admin_client=admin_client)
        _identity_flow = IdentityReconciliationFlow(
            UserClient(provider, store),
            analytics=PostHogService(),
        )

        set_preferences(PreferencesStore(settings.preferences_path))
        set_asset_storage(AssetStorage(client))
        set_identity_flow(_identity_flow)
        await _identity_flow.start()

        logger.info(
            "Identity flow initialized successfully",
            extra={"supabase_url": settings.supabase_url},
        )

    except Exception as e:
        logger.error(
            f"Failed to initialize identity flow: {e}",
            exc_info=True,
            extra={"error_type": "identity_flow_init_failed"},
        )
        raise

    yield

    # Shutdown
    if _identity_flow is not None:
        try:
            await _identity_flow.close()
            logger.info("Identity flow cleanup completed")
        except Exception as e:
            logger.error(f"Error during identity flow cleanup: {e}", exc_info=True)
        finally:
            set_identity_flow(None)
            set_asset_storage(None)
            _identity_flow = None


app = FastAPI(
    title="Shots API",
    description="Session and user profile service for Shots",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

origins = settings.cors_origins.split(",")
logger.info(f"Origins : {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(identity_router, prefix=settings.api_v1_prefix, tags=["identity"])
app.include_router(onboarding_router, prefix=settings.api_v1_prefix, tags=["onboarding"])
app.include_router(assets_router, prefix=settings.api_v1_prefix, tags=["assets"])


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str


@app.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint."""
    return HealthCheckResponse(status="healthy")
