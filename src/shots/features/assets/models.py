"""Pydantic models for asset uploads."""

from pydantic import BaseModel, Field


class AssetUploadResponse(BaseModel):
    """Location of an uploaded asset."""

    path: str = Field(description="Object path inside the bucket")
    url: str = Field(description="Public URL of the object")
