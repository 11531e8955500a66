"""Platform credential store.

Single source of truth for which platforms are configured (app-level OAuth
client credentials present) and authorized (user access token present).
"""

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError

from social_publisher.config import Settings
from social_publisher.domain.enums import Platform
from social_publisher.domain.models import PlatformCredentials, UnsupportedPlatform, parse_platform
from social_publisher.logging import get_logger
from social_publisher.services.encryption import EncryptionError
from social_publisher.services.token_vault import StoredTokens, TokenVault, TokenVaultError

logger = get_logger(__name__)


def credentials_from_settings(cfg: Settings) -> dict[Platform, PlatformCredentials]:
    """Build per-platform credentials from application settings."""
    return {
        Platform.YOUTUBE: PlatformCredentials(
            platform=Platform.YOUTUBE,
            client_id=cfg.youtube_client_id,
            client_secret=cfg.youtube_client_secret,
            access_token=cfg.youtube_access_token,
            refresh_token=cfg.youtube_refresh_token,
        ),
        Platform.TIKTOK: PlatformCredentials(
            platform=Platform.TIKTOK,
            client_id=cfg.tiktok_client_key,
            client_secret=cfg.tiktok_client_secret,
            access_token=cfg.tiktok_access_token,
        ),
        Platform.INSTAGRAM: PlatformCredentials(
            platform=Platform.INSTAGRAM,
            client_id=cfg.instagram_app_id,
            client_secret=cfg.instagram_app_secret,
            access_token=cfg.instagram_access_token,
            account_id=cfg.instagram_account_id,
        ),
    }


class CredentialStore:
    """Holds app credentials and user tokens for every platform.

    Tokens are merged from three layers, later layers winning: the
    configuration source, the optional encrypted token vault, and tokens set
    at runtime through set_access_token.
    """

    def __init__(
        self,
        settings_source: Callable[[], Settings] = Settings,
        vault: TokenVault | None = None,
    ) -> None:
        self._settings_source = settings_source
        self._vault = vault
        self._credentials: dict[Platform, PlatformCredentials] = {
            platform: PlatformCredentials(platform=platform) for platform in Platform
        }
        self._runtime_tokens: dict[Platform, StoredTokens] = {}
        self.reload()

    def reload(self) -> bool:
        """Re-read credentials from the configuration source.

        On failure the previous state is kept and False is returned.
        """
        try:
            cfg = self._settings_source()
        except ValidationError as e:
            logger.error("credential_reload_failed", error=str(e))
            return False

        credentials = credentials_from_settings(cfg)

        stored: dict[Platform, StoredTokens] = {}
        if self._vault is not None:
            try:
                stored = self._vault.load()
            except (TokenVaultError, EncryptionError) as e:
                logger.warning("token_vault_load_failed", error=str(e))

        for layer in (stored, self._runtime_tokens):
            for platform, tokens in layer.items():
                credentials[platform] = _apply_tokens(credentials[platform], tokens)

        self._credentials = credentials
        logger.debug(
            "credentials_reloaded",
            configured=self.list_configured_platforms(),
            authorized=[p.value for p in Platform if credentials[p].is_authorized],
        )
        return True

    def get(self, platform: str | Platform) -> PlatformCredentials | None:
        """Return the credentials for a platform, or None for unknown ids."""
        parsed = parse_platform(platform)
        if isinstance(parsed, UnsupportedPlatform):
            return None
        return self._credentials[parsed]

    def is_configured(self, platform: str | Platform) -> bool:
        """True iff the platform's client id and secret are both present."""
        credentials = self.get(platform)
        return credentials is not None and credentials.is_configured

    def is_authorized(self, platform: str | Platform) -> bool:
        """True iff the platform is configured and holds an access token."""
        credentials = self.get(platform)
        return credentials is not None and credentials.is_authorized

    def list_configured_platforms(self) -> list[str]:
        """Configured platforms in fixed priority order (youtube, tiktok, instagram)."""
        return [p.value for p in Platform if self._credentials[p].is_configured]

    def set_access_token(
        self,
        platform: str | Platform,
        token: str,
        refresh_token: str | None = None,
        expires_in: int | None = None,
        account_id: str | None = None,
    ) -> bool:
        """Store a user access token for a configured platform.

        Returns False without changing anything when the platform is unknown
        or not configured.
        """
        current = self.get(platform)
        if current is None or not current.is_configured or not token:
            logger.warning("access_token_rejected", platform=str(platform))
            return False

        expires_at = datetime.now(UTC) + timedelta(seconds=expires_in) if expires_in else None
        tokens = StoredTokens(
            access_token=token,
            refresh_token=refresh_token or current.refresh_token,
            expires_at=expires_at,
            account_id=account_id or current.account_id,
        )

        self._runtime_tokens[current.platform] = tokens
        self._credentials[current.platform] = _apply_tokens(current, tokens)
        logger.info("access_token_updated", platform=current.platform.value)

        if self._vault is not None:
            try:
                self._vault.save(current.platform, tokens)
            except TokenVaultError as e:
                logger.warning(
                    "token_vault_save_failed",
                    platform=current.platform.value,
                    error=str(e),
                )

        return True


def _apply_tokens(credentials: PlatformCredentials, tokens: StoredTokens) -> PlatformCredentials:
    return replace(
        credentials,
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token or credentials.refresh_token,
        token_expires_at=tokens.expires_at,
        account_id=tokens.account_id or credentials.account_id,
    )
