"""Tests for asset upload API handlers."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.shots.features.assets.dependencies import get_asset_storage
from src.shots.features.identity.dependencies import get_identity_flow
from src.shots.models.user import User
from src.shots.services.storage import UploadFailedError

TEST_USER = User(id="apple-1", created_at=datetime(2024, 1, 11, tzinfo=UTC))


@pytest.fixture
def mock_storage() -> MagicMock:
    storage = MagicMock()
    storage.upload = AsyncMock(return_value="https://storage.example.com/apple-1/shot.jpg")
    return storage


@pytest.fixture
def mock_flow() -> MagicMock:
    flow = MagicMock()
    flow.cache.current = TEST_USER
    return flow


@pytest.fixture
def client_with_storage(client: TestClient, mock_storage: MagicMock, mock_flow: MagicMock):
    from src.shots.main import app

    app.dependency_overrides[get_asset_storage] = lambda: mock_storage
    app.dependency_overrides[get_identity_flow] = lambda: mock_flow
    yield client
    app.dependency_overrides = {}


def test_upload_asset(client_with_storage: TestClient, mock_storage: MagicMock) -> None:
    """Test PUT /assets stores the body under the user's folder."""
    response = client_with_storage.put(
        "/api/v1/assets/shots/shot.jpg",
        content=b"jpeg-bytes",
        headers={"Content-Type": "image/jpeg"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "path": "apple-1/shots/shot.jpg",
        "url": "https://storage.example.com/apple-1/shot.jpg",
    }
    mock_storage.upload.assert_awaited_once_with(
        b"jpeg-bytes",
        "apple-1/shots/shot.jpg",
        metadata={"owner": "apple-1"},
        content_type="image/jpeg",
    )


def test_upload_requires_signed_in_user(
    client_with_storage: TestClient, mock_storage: MagicMock, mock_flow: MagicMock
) -> None:
    """Test that uploads are refused before a profile is reconciled."""
    mock_flow.cache.current = None

    response = client_with_storage.put("/api/v1/assets/shot.jpg", content=b"jpeg-bytes")

    assert response.status_code == 401
    mock_storage.upload.assert_not_called()


def test_upload_rejects_empty_body(
    client_with_storage: TestClient, mock_storage: MagicMock
) -> None:
    """Test that an empty body is a bad request."""
    response = client_with_storage.put("/api/v1/assets/shot.jpg", content=b"")

    assert response.status_code == 400
    mock_storage.upload.assert_not_called()


def test_upload_rejects_empty_segments(
    client_with_storage: TestClient, mock_storage: MagicMock
) -> None:
    """Test that a name with an empty path segment is a bad request."""
    response = client_with_storage.put("/api/v1/assets/shots//shot.jpg", content=b"jpeg-bytes")

    assert response.status_code == 400
    mock_storage.upload.assert_not_called()


def test_upload_failure_is_502(client_with_storage: TestClient, mock_storage: MagicMock) -> None:
    """Test that a storage failure is reported as a bad gateway."""
    mock_storage.upload.side_effect = UploadFailedError("Failed to upload apple-1/shot.jpg")

    response = client_with_storage.put("/api/v1/assets/shot.jpg", content=b"jpeg-bytes")

    assert response.status_code == 502
