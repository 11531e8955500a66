"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient

# Set test environment before importing app modules
for _key in list(os.environ):
    if _key.upper().startswith(("YOUTUBE_", "TIKTOK_", "INSTAGRAM_", "FACEBOOK_")):
        del os.environ[_key]
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["PUBLISHER_MODE"] = "stub"
os.environ.pop("TOKEN_STORE_PATH", None)

from social_publisher.config import Settings  # noqa: E402
from social_publisher.domain.models import VideoAsset  # noqa: E402

TEST_KEY = Fernet.generate_key().decode()


def _make_settings(**overrides) -> Settings:
    """Settings isolated from the process environment's .env file."""
    values = {
        "publisher_mode": "stub",
        "encryption_master_key": TEST_KEY,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    """Directory holding generated media, with one video in it."""
    root = tmp_path / "generated"
    root.mkdir()
    (root / "video_1.mp4").write_bytes(b"\x00\x00\x00\x18ftypmp42 test video")
    return root


@pytest.fixture
def configured_settings(media_root: Path) -> Settings:
    """Settings with app credentials for every platform, no user tokens."""
    return _make_settings(
        media_root=str(media_root),
        youtube_client_id="yt-client",
        youtube_client_secret="yt-secret",
        tiktok_client_key="tt-key",
        tiktok_client_secret="tt-secret",
        instagram_app_id="ig-app",
        instagram_app_secret="ig-secret",
    )


@pytest.fixture
def authorized_settings(configured_settings: Settings) -> Settings:
    """Settings where every platform also holds an access token."""
    return configured_settings.model_copy(
        update={
            "youtube_access_token": "yt-token",
            "tiktok_access_token": "tt-token",
            "instagram_access_token": "ig-token",
            "instagram_account_id": "1789",
        }
    )


@pytest.fixture
def video() -> VideoAsset:
    return VideoAsset(
        id=1,
        title="Sunset Timelapse",
        owner_id=7,
        media_location="/generated/video_1.mp4",
        description="Golden hour over the bay",
    )


@pytest.fixture
def container(authorized_settings: Settings, video: VideoAsset):
    """Container running stub publishers with one stored video."""
    from social_publisher.container import build_container
    from social_publisher.services.videos import InMemoryVideoRepository

    return build_container(
        authorized_settings,
        videos=InMemoryVideoRepository([video]),
    )


@pytest.fixture
def test_client(container) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from social_publisher.main import create_app

    with TestClient(create_app(container), base_url="http://localhost:5000") as client:
        yield client


@pytest.fixture
def make_settings():
    """Factory for Settings isolated from the environment's .env file."""
    return _make_settings


@pytest.fixture
def cipher():
    from social_publisher.services.encryption import TokenCipher

    return TokenCipher(TEST_KEY)
