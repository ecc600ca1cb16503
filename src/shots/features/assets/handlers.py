"""API handlers for uploading user assets."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.shots.features.assets.dependencies import get_asset_storage
from src.shots.features.assets.models import AssetUploadResponse
from src.shots.features.identity.dependencies import get_identity_flow
from src.shots.features.identity.flow import IdentityReconciliationFlow
from src.shots.services.storage import AssetStorage, UploadFailedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assets", tags=["assets"])


@router.put("/{name:path}", response_model=AssetUploadResponse)
async def upload_asset(
    name: str,
    request: Request,
    storage: AssetStorage = Depends(get_asset_storage),
    flow: IdentityReconciliationFlow = Depends(get_identity_flow),
) -> AssetUploadResponse:
    """
    Upload the request body as an asset owned by the signed-in user.

    The object is stored at ``<user id>/<name>`` with the request's
    Content-Type.

    Args:
        name: Object name, relative to the user's folder

    Returns:
        Stored path and public URL

    Raises:
        HTTPException: 401 if no profile has been reconciled yet
        HTTPException: 400 if the name or body is invalid
        HTTPException: 502 if the upload fails
    """
    user = flow.cache.current
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in",
        )

    segments = name.split("/")
    if any(segment in ("", ".", "..") for segment in segments):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid asset name",
        )

    data = await request.body()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Asset body is empty",
        )

    path = f"{user.id}/{name}"
    try:
        url = await storage.upload(
            data,
            path,
            metadata={"owner": user.id},
            content_type=request.headers.get("content-type"),
        )
    except UploadFailedError as e:
        logger.error(f"Error uploading asset {path}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to upload asset. Please try again.",
        ) from e

    logger.info(f"Asset uploaded: {path}", extra={"user_id": user.id, "size": len(data)})
    return AssetUploadResponse(path=path, url=url)
