"""Signed, single-use OAuth state values.

The state carries the platform and the exact redirect URI used when the
authorization URL was issued, encrypted with the application's Fernet key.
Fernet timestamps every token, which bounds its lifetime.
"""

import json
import secrets
import time
from dataclasses import dataclass

from social_publisher.domain.enums import Platform
from social_publisher.services.encryption import EncryptionError, TokenCipher


class InvalidStateError(Exception):
    """Raised when a callback's state value is forged, expired, or replayed."""

    pass


@dataclass(frozen=True)
class OAuthState:
    platform: Platform
    redirect_uri: str
    nonce: str


class OAuthStateSigner:
    """Issues and consumes anti-forgery state values."""

    def __init__(self, cipher: TokenCipher, ttl_seconds: int = 600) -> None:
        self._cipher = cipher
        self.ttl_seconds = ttl_seconds
        self._consumed: dict[str, float] = {}

    def issue(self, platform: Platform, redirect_uri: str) -> str:
        payload = {"p": platform.value, "r": redirect_uri, "n": secrets.token_urlsafe(16)}
        return self._cipher.encrypt(json.dumps(payload, separators=(",", ":")))

    def consume(self, state: str, platform: Platform) -> OAuthState:
        """Verify a state value and mark it as used.

        Raises:
            InvalidStateError: If the value does not verify, belongs to another
                platform, is older than the TTL, or was already consumed.
        """
        try:
            payload = json.loads(self._cipher.decrypt(state, ttl=self.ttl_seconds))
            parsed = OAuthState(
                platform=Platform(payload["p"]),
                redirect_uri=payload["r"],
                nonce=payload["n"],
            )
        except (EncryptionError, ValueError, KeyError, TypeError) as e:
            raise InvalidStateError(f"Invalid OAuth state: {e}")

        if parsed.platform != platform:
            raise InvalidStateError("OAuth state was issued for a different platform")

        self._prune()
        if parsed.nonce in self._consumed:
            raise InvalidStateError("OAuth state was already used")

        self._consumed[parsed.nonce] = time.time()
        return parsed

    def _prune(self) -> None:
        # Expired states fail the TTL check, so their nonces can be forgotten
        cutoff = time.time() - self.ttl_seconds
        for nonce in [n for n, used_at in self._consumed.items() if used_at < cutoff]:
            del self._consumed[nonce]
