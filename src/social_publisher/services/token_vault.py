"""Encrypted on-disk persistence for OAuth tokens.

Tokens are kept per platform in a JSON document whose secret fields are
Fernet-encrypted. The vault is optional; without it tokens live only in memory
and re-authorization is required after a restart.
"""

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from social_publisher.domain.enums import Platform
from social_publisher.logging import get_logger
from social_publisher.services.encryption import EncryptionError, TokenCipher

logger = get_logger(__name__)


class TokenVaultError(Exception):
    """Raised when the vault file cannot be read or written."""

    pass


@dataclass(frozen=True)
class StoredTokens:
    """Tokens persisted for one platform."""

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    account_id: str | None = None


class TokenVault:
    """Reads and writes encrypted platform tokens to a single JSON file."""

    def __init__(self, path: Path, cipher: TokenCipher) -> None:
        self.path = path
        self._cipher = cipher

    def load(self) -> dict[Platform, StoredTokens]:
        """Load all stored tokens.

        Raises:
            TokenVaultError: If the file exists but cannot be parsed or decrypted.
        """
        tokens: dict[Platform, StoredTokens] = {}
        for key, entry in self._read().items():
            try:
                platform = Platform(key)
            except ValueError:
                logger.warning("token_vault_unknown_platform", platform=key)
                continue

            try:
                if not isinstance(entry, dict):
                    raise TypeError(f"expected an object, got {type(entry).__name__}")
                tokens[platform] = self._decode_entry(entry)
            except (EncryptionError, KeyError, TypeError, ValueError) as e:
                raise TokenVaultError(f"Corrupted token vault entry for {key}: {e}")

        return tokens

    def save(self, platform: Platform, tokens: StoredTokens) -> None:
        """Store tokens for a platform, replacing any previous entry.

        Raises:
            TokenVaultError: If the vault cannot be written.
        """
        raw = self._read()
        try:
            raw[platform.value] = self._encode_entry(tokens)
        except EncryptionError as e:
            raise TokenVaultError(f"Failed to encrypt tokens for {platform}: {e}")

        self._write(raw)
        logger.info("token_vault_saved", platform=platform.value)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise TokenVaultError(f"Failed to read token vault {self.path}: {e}")

        if not isinstance(raw, dict):
            raise TokenVaultError(f"Token vault {self.path} does not hold a JSON object")
        return raw

    def _encode_entry(self, tokens: StoredTokens) -> dict[str, Any]:
        return {
            "access_token": self._cipher.encrypt(tokens.access_token),
            "refresh_token": (
                self._cipher.encrypt(tokens.refresh_token) if tokens.refresh_token else None
            ),
            "expires_at": tokens.expires_at.isoformat() if tokens.expires_at else None,
            "account_id": tokens.account_id,
        }

    def _decode_entry(self, entry: dict[str, Any]) -> StoredTokens:
        refresh_token = entry.get("refresh_token")
        expires_at = entry.get("expires_at")
        return StoredTokens(
            access_token=self._cipher.decrypt(entry["access_token"]),
            refresh_token=self._cipher.decrypt(refresh_token) if refresh_token else None,
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            account_id=entry.get("account_id"),
        )

    def _write(self, raw: dict[str, Any]) -> None:
        """Write the document via a temp file and an atomic rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".tokens-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(raw, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise TokenVaultError(f"Failed to write token vault {self.path}: {e}")
