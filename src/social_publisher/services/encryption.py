"""Encryption utilities for token storage and OAuth state signing.

Uses Fernet symmetric encryption with a master key taken from settings.
"""

from cryptography.fernet import Fernet, InvalidToken

from social_publisher.logging import get_logger

logger = get_logger(__name__)


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""

    pass


class TokenCipher:
    """Fernet wrapper bound to one master key."""

    def __init__(self, master_key: str | None = None, environment: str = "development") -> None:
        if not master_key:
            if environment.lower() in ("production", "prod"):
                raise EncryptionError(
                    "ENCRYPTION_MASTER_KEY is required in production. "
                    "Generate one with: social-publisher generate-key"
                )
            # Tokens encrypted with a generated key are unreadable after restart
            master_key = generate_master_key()
            logger.warning(
                "encryption_using_generated_key",
                hint="Set ENCRYPTION_MASTER_KEY in .env for token persistence across restarts",
            )

        try:
            self._fernet = Fernet(master_key.encode())
        except Exception as e:
            raise EncryptionError(f"Failed to initialize encryption: {e}")

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a value for storage or transport.

        Raises:
            EncryptionError: If the value is empty or encryption fails.
        """
        if not plaintext:
            raise EncryptionError("Cannot encrypt empty token")

        try:
            return self._fernet.encrypt(plaintext.encode()).decode()
        except Exception as e:
            raise EncryptionError(f"Failed to encrypt token: {e}")

    def decrypt(self, encrypted: str, ttl: int | None = None) -> str:
        """Decrypt a value, optionally rejecting it when older than ttl seconds.

        Raises:
            EncryptionError: If decryption fails (invalid key, corrupted data, expired).
        """
        if not encrypted:
            raise EncryptionError("Cannot decrypt empty token")

        try:
            return self._fernet.decrypt(encrypted.encode(), ttl=ttl).decode()
        except InvalidToken:
            raise EncryptionError(
                "Failed to decrypt token: invalid key, corrupted data or expired value. "
                "This may happen if ENCRYPTION_MASTER_KEY changed."
            )
        except Exception as e:
            raise EncryptionError(f"Failed to decrypt token: {e}")


def generate_master_key() -> str:
    """Generate a new Fernet-compatible master key."""
    return Fernet.generate_key().decode()
