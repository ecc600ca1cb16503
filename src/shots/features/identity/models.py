"""Pydantic models for the identity endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.shots.models.user import User


class NonceResponse(BaseModel):
    """Hashed nonce to send with the provider sign-in request."""

    hashed_nonce: str


class SignInRequest(BaseModel):
    """Credential returned by the provider sign-in sheet."""

    provider: str = Field("apple", description="Identity provider name")
    id_token: str | None = Field(None, description="Provider identity token (JWT)")
    email: str | None = None
    full_name: str | None = Field(None, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "provider": "apple",
                "id_token": "eyJhbGciOi...",
                "email": "jane@example.com",
                "full_name": "Jane Appleseed",
            }
        }
    )


class UserResponse(BaseModel):
    """Response model for a user profile."""

    id: str
    created_at: datetime
    email: str | None = None
    name: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, created_at=user.created_at, email=user.email, name=user.name)


class SessionResponse(BaseModel):
    """Current state of the identity flow."""

    state: str
    provider_user_id: str | None = None
