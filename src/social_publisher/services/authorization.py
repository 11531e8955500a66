"""OAuth authorization lifecycle: authorization URLs and callback completion."""

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass, field

from social_publisher.adapters.publisher.oauth import OAuthError, OAuthProvider
from social_publisher.domain.enums import AuthorizationStatus, FailureReason, Platform
from social_publisher.domain.models import CallbackOutcome, UnsupportedPlatform, parse_platform
from social_publisher.logging import get_logger
from social_publisher.services.credentials import CredentialStore
from social_publisher.services.oauth_state import InvalidStateError, OAuthStateSigner

logger = get_logger(__name__)

CALLBACK_PATH = "/api/auth/{platform}/callback"

# How long a redeemed code is remembered for replay detection
DEFAULT_CODE_TTL_SECONDS = 600


def is_loopback_origin(origin: str) -> bool:
    """True for localhost-style origins, which are served over plain http."""
    host = origin.strip().lower()
    if host.startswith("["):
        host = host[1:].split("]", 1)[0]
    elif host.count(":") == 1:
        host = host.split(":", 1)[0]
    return (
        host in ("localhost", "::1")
        or host.endswith(".localhost")
        or host.startswith("127.")
    )


def build_redirect_uri(platform: Platform, caller_origin: str) -> str:
    """Callback URL registered with the platform for this origin."""
    origin = caller_origin.strip().rstrip("/")
    protocol = "http" if is_loopback_origin(origin) else "https"
    return f"{protocol}://{origin}{CALLBACK_PATH.format(platform=platform.value)}"


@dataclass
class AuthorizationAttempt:
    """One pass through the callback state machine."""

    platform: str
    status: AuthorizationStatus = AuthorizationStatus.PENDING
    history: list[AuthorizationStatus] = field(default_factory=list)

    def transition(self, status: AuthorizationStatus) -> None:
        if self.status.is_terminal:
            raise RuntimeError(f"Attempt already finished as {self.status}")
        self.history.append(self.status)
        self.status = status

    def finish(
        self,
        status: AuthorizationStatus,
        message: str,
        reason: FailureReason | None = None,
    ) -> CallbackOutcome:
        self.transition(status)
        logger.info(
            "oauth_callback_finished",
            platform=self.platform,
            status=status.value,
            reason=reason.value if reason else None,
        )
        return CallbackOutcome(
            platform=self.platform,
            status=status,
            message=message,
            failure_reason=reason,
        )


class AuthorizationService:
    """Builds authorization URLs and completes OAuth callbacks.

    A successful callback stores the new access token in the credential store;
    every failure leaves the store untouched.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        providers: Mapping[Platform, OAuthProvider],
        state_signer: OAuthStateSigner | None = None,
        require_state: bool = True,
        code_ttl_seconds: int | None = None,
    ) -> None:
        self.credentials = credentials
        self.providers = dict(providers)
        self.state_signer = state_signer
        self.require_state = require_state and state_signer is not None
        if code_ttl_seconds is None and state_signer is not None:
            code_ttl_seconds = state_signer.ttl_seconds
        self.code_ttl_seconds = code_ttl_seconds or DEFAULT_CODE_TTL_SECONDS
        self._used_codes: dict[tuple[Platform, str], float] = {}

    def get_authorization_url(self, platform: str, caller_origin: str) -> str | None:
        """Build the platform's OAuth authorization URL.

        Returns None when the platform is unknown or not configured.
        """
        parsed = parse_platform(platform)
        if isinstance(parsed, UnsupportedPlatform) or parsed not in self.providers:
            return None

        credentials = self.credentials.get(parsed)
        if credentials is None or not credentials.is_configured:
            return None

        redirect_uri = build_redirect_uri(parsed, caller_origin)
        state = self.state_signer.issue(parsed, redirect_uri) if self.state_signer else None

        logger.info("oauth_url_issued", platform=parsed.value, redirect_uri=redirect_uri)
        return self.providers[parsed].build_authorization_url(credentials, redirect_uri, state)

    async def handle_callback(
        self,
        platform: str,
        code: str | None = None,
        error: str | None = None,
        state: str | None = None,
        caller_origin: str | None = None,
    ) -> CallbackOutcome:
        """Complete an authorization attempt started by get_authorization_url."""
        attempt = AuthorizationAttempt(platform=platform)
        parsed = parse_platform(platform)

        if isinstance(parsed, UnsupportedPlatform) or parsed not in self.providers:
            return attempt.finish(
                AuthorizationStatus.FAILED,
                f"Unsupported platform: {platform}",
                FailureReason.UNSUPPORTED_PLATFORM,
            )

        attempt.platform = parsed.value
        name = parsed.display_name

        if error:
            logger.warning("oauth_access_denied", platform=parsed.value, error=error)
            return attempt.finish(
                AuthorizationStatus.DENIED,
                f"{name} connection failed: {error}",
            )

        if not code:
            return attempt.finish(
                AuthorizationStatus.FAILED,
                "No authorization code received.",
                FailureReason.INVALID_CALLBACK,
            )

        redirect_uri = build_redirect_uri(parsed, caller_origin) if caller_origin else None
        if state and self.state_signer is not None:
            try:
                redirect_uri = self.state_signer.consume(state, parsed).redirect_uri
            except InvalidStateError as e:
                logger.warning("oauth_state_rejected", platform=parsed.value, error=str(e))
                return attempt.finish(
                    AuthorizationStatus.FAILED,
                    "The authorization request could not be verified. Please try again.",
                    FailureReason.INVALID_CALLBACK,
                )
        elif self.require_state:
            return attempt.finish(
                AuthorizationStatus.FAILED,
                "The authorization request could not be verified. Please try again.",
                FailureReason.INVALID_CALLBACK,
            )

        if redirect_uri is None:
            return attempt.finish(
                AuthorizationStatus.FAILED,
                "Unable to determine the callback URL for this request.",
                FailureReason.INVALID_CALLBACK,
            )

        attempt.transition(AuthorizationStatus.CODE_RECEIVED)

        credentials = self.credentials.get(parsed)
        if credentials is None or not credentials.is_configured:
            return attempt.finish(
                AuthorizationStatus.FAILED,
                f"{name} API credentials not configured.",
                FailureReason.NOT_CONFIGURED,
            )

        # Authorization codes are single-use
        self._prune_used_codes()
        if (parsed, code) in self._used_codes:
            logger.warning("oauth_code_replayed", platform=parsed.value)
            return attempt.finish(
                AuthorizationStatus.FAILED,
                "This authorization code was already used. Please connect again.",
                FailureReason.PROVIDER_ERROR,
            )
        self._used_codes[(parsed, code)] = time.time()

        failure_message = f"There was an error connecting to {name}. Please try again."
        try:
            tokens = await self.providers[parsed].exchange_code(credentials, code, redirect_uri)
        except OAuthError as e:
            logger.warning("oauth_exchange_failed", platform=parsed.value, error=str(e))
            return attempt.finish(
                AuthorizationStatus.FAILED, failure_message, FailureReason.PROVIDER_ERROR
            )
        except Exception:
            logger.exception("oauth_exchange_error", platform=parsed.value)
            return attempt.finish(
                AuthorizationStatus.FAILED, failure_message, FailureReason.PROVIDER_ERROR
            )

        # The vault write is blocking file I/O
        stored = await asyncio.to_thread(
            self.credentials.set_access_token,
            parsed,
            tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_in=tokens.expires_in,
            account_id=tokens.account_id,
        )
        if not stored:
            return attempt.finish(
                AuthorizationStatus.FAILED,
                f"{name} API credentials not configured.",
                FailureReason.NOT_CONFIGURED,
            )

        return attempt.finish(
            AuthorizationStatus.TOKEN_EXCHANGED,
            f"{name} successfully connected!",
        )

    def _prune_used_codes(self) -> None:
        # Platforms expire codes within minutes, so older entries cannot be replayed
        cutoff = time.time() - self.code_ttl_seconds
        for key in [k for k, used_at in self._used_codes.items() if used_at < cutoff]:
            del self._used_codes[key]
