"""Application wiring: builds the services shared by the API and the CLI."""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import httpx

from social_publisher.adapters.http import build_async_client
from social_publisher.adapters.publisher import (
    InstagramOAuthProvider,
    InstagramPublisher,
    OAuthProvider,
    PublisherAdapter,
    StubPublisherAdapter,
    TikTokOAuthProvider,
    TikTokPublisher,
    YouTubeOAuthProvider,
    YouTubePublisher,
)
from social_publisher.config import Settings, get_settings
from social_publisher.domain.enums import Platform
from social_publisher.logging import get_logger
from social_publisher.services.authorization import AuthorizationService
from social_publisher.services.credentials import CredentialStore
from social_publisher.services.encryption import TokenCipher
from social_publisher.services.media import MediaResolver
from social_publisher.services.oauth_state import OAuthStateSigner
from social_publisher.services.orchestrator import PublishOrchestrator
from social_publisher.services.publishing import PublishingService
from social_publisher.services.token_vault import TokenVault
from social_publisher.services.videos import (
    ActivityRecorder,
    InMemoryActivityLog,
    InMemoryVideoRepository,
    VideoRepository,
)

logger = get_logger(__name__)


@dataclass
class Container:
    settings: Settings
    http_client: httpx.AsyncClient
    credentials: CredentialStore
    authorization: AuthorizationService
    publishers: dict[Platform, PublisherAdapter]
    orchestrator: PublishOrchestrator
    publishing: PublishingService
    videos: VideoRepository
    activities: ActivityRecorder
    owns_http_client: bool = True

    async def aclose(self) -> None:
        if self.owns_http_client:
            await self.http_client.aclose()


def build_providers(client: httpx.AsyncClient, cfg: Settings) -> dict[Platform, OAuthProvider]:
    return {
        Platform.YOUTUBE: YouTubeOAuthProvider(client, max_attempts=cfg.http_max_retries),
        Platform.TIKTOK: TikTokOAuthProvider(client, max_attempts=cfg.http_max_retries),
        Platform.INSTAGRAM: InstagramOAuthProvider(client, max_attempts=cfg.http_max_retries),
    }


def build_publishers(
    cfg: Settings,
    credentials: CredentialStore,
    client: httpx.AsyncClient,
    providers: dict[Platform, OAuthProvider],
) -> dict[Platform, PublisherAdapter]:
    """Create one publisher per platform according to PUBLISHER_MODE."""
    if cfg.publisher_mode == "stub":
        return {platform: StubPublisherAdapter(platform, credentials) for platform in Platform}

    options = {
        "client": client,
        "timeout": cfg.upload_timeout_seconds,
        "max_attempts": cfg.http_max_retries,
    }
    return {
        Platform.YOUTUBE: YouTubePublisher(
            credentials, oauth=providers[Platform.YOUTUBE], **options
        ),
        Platform.TIKTOK: TikTokPublisher(
            credentials, oauth=providers[Platform.TIKTOK], **options
        ),
        Platform.INSTAGRAM: InstagramPublisher(
            credentials,
            oauth=providers[Platform.INSTAGRAM],
            public_base_url=cfg.public_base_url,
            **options,
        ),
    }


def build_container(
    cfg: Settings | None = None,
    *,
    settings_source: Callable[[], Settings] | None = None,
    http_client: httpx.AsyncClient | None = None,
    videos: VideoRepository | None = None,
    activities: ActivityRecorder | None = None,
) -> Container:
    """Build the application container.

    Args:
        cfg: Settings to build from. Defaults to the process settings.
        settings_source: Called by CredentialStore.reload(). Defaults to
            re-reading the environment when cfg is not given, otherwise to cfg.
        http_client: Shared HTTP client; created (and later closed) when omitted.
        videos: Video storage collaborator. Defaults to an in-memory store.
        activities: Activity log collaborator. Defaults to an in-memory log.
    """
    if cfg is None:
        cfg = get_settings()
        source = settings_source or Settings
    else:
        fixed = cfg
        source = settings_source or (lambda: fixed)

    owns_client = http_client is None
    client = http_client or build_async_client(cfg.http_timeout_seconds)

    cipher = TokenCipher(cfg.encryption_master_key, environment=cfg.environment)
    vault = TokenVault(Path(cfg.token_store_path), cipher) if cfg.token_store_path else None
    credentials = CredentialStore(source, vault=vault)

    providers = build_providers(client, cfg)
    authorization = AuthorizationService(
        credentials,
        providers,
        state_signer=OAuthStateSigner(cipher, ttl_seconds=cfg.oauth_state_ttl_seconds),
        require_state=cfg.oauth_require_state,
    )

    publishers = build_publishers(cfg, credentials, client, providers)
    orchestrator = PublishOrchestrator(publishers, MediaResolver(Path(cfg.media_root)))

    videos = videos if videos is not None else InMemoryVideoRepository()
    activities = activities if activities is not None else InMemoryActivityLog()

    logger.info(
        "container_built",
        publisher_mode=cfg.publisher_mode,
        configured=credentials.list_configured_platforms(),
        token_vault=bool(vault),
    )

    return Container(
        settings=cfg,
        http_client=client,
        credentials=credentials,
        authorization=authorization,
        publishers=publishers,
        orchestrator=orchestrator,
        publishing=PublishingService(videos, activities, orchestrator),
        videos=videos,
        activities=activities,
        owns_http_client=owns_client,
    )
