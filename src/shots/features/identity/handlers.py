"""API handlers for sign-in, sign-out, account deletion and the current user."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.shots.features.identity.dependencies import get_identity_flow
from src.shots.features.identity.events import SignInSucceeded
from src.shots.features.identity.flow import IdentityReconciliationFlow
from src.shots.features.identity.models import (
    NonceResponse,
    SessionResponse,
    SignInRequest,
    UserResponse,
)
from src.shots.features.identity.state import state_name
from src.shots.services.auth import AuthenticationError, ProviderCredential

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/auth/nonce", response_model=NonceResponse)
async def request_nonce(
    flow: IdentityReconciliationFlow = Depends(get_identity_flow),
) -> NonceResponse:
    """
    Start a provider sign-in.

    Returns:
        SHA-256 of a fresh one-time nonce; include it in the provider request
    """
    return NonceResponse(hashed_nonce=flow.request_sign_in())


@router.post("/auth/sign-in", response_model=UserResponse)
async def sign_in(
    req: SignInRequest,
    flow: IdentityReconciliationFlow = Depends(get_identity_flow),
) -> UserResponse:
    """
    Complete a provider sign-in with the credential from the sign-in sheet.

    Args:
        req: Provider credential

    Returns:
        The signed-in user's profile

    Raises:
        HTTPException: 401 if the credential or sign-in is rejected
    """
    credential = ProviderCredential(
        provider=req.provider,
        id_token=req.id_token,
        email=req.email,
        full_name=req.full_name,
    )
    message = await flow.complete_sign_in(credential)
    if isinstance(message, SignInSucceeded):
        return UserResponse.from_user(message.user)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message.description,
    )


@router.post("/auth/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    flow: IdentityReconciliationFlow = Depends(get_identity_flow),
) -> Response:
    """Sign out. A fresh anonymous session follows automatically."""
    try:
        await flow.sign_out()
    except AuthenticationError as e:
        logger.error(f"Error signing out: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to sign out. Please try again.",
        ) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/auth/account", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    flow: IdentityReconciliationFlow = Depends(get_identity_flow),
) -> Response:
    """
    Delete the current account: profile document first, then the principal.

    Raises:
        HTTPException: 401 if nobody is signed in
        HTTPException: 500 if deletion fails
    """
    if state_name(flow.state) == "unauthenticated":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in",
        )
    try:
        await flow.delete_account()
    except Exception as e:
        logger.error(f"Error deleting account: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete account. Please try again.",
        ) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    flow: IdentityReconciliationFlow = Depends(get_identity_flow),
) -> UserResponse:
    """
    Return the cached user.

    Raises:
        HTTPException: 404 if no profile has been reconciled yet
    """
    user = flow.cache.current
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No signed-in user",
        )
    return UserResponse.from_user(user)


@router.get("/session", response_model=SessionResponse)
async def get_session_state(
    flow: IdentityReconciliationFlow = Depends(get_identity_flow),
) -> SessionResponse:
    """Return the identity flow's current state."""
    state = flow.state
    return SessionResponse(
        state=state_name(state),
        provider_user_id=getattr(state, "provider_user_id", None),
    )
