"""Encryption for stored Jira API tokens.

Tokens are encrypted with Fernet (AES-128-CBC + HMAC) using a key derived
from the configured secret via scrypt. Values written before encryption was
introduced are plain text; decrypt() accepts those and returns them as-is.
"""

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from logs import get_logger

logger = get_logger(__name__)

_SALT = b"worklog-distributor"


class CredentialDecryptionError(Exception):
    """Raised when a stored value cannot be decrypted."""


def derive_key(secret: str) -> bytes:
    """Derive a Fernet key from an arbitrary secret string."""
    raw = hashlib.scrypt(secret.encode(), salt=_SALT, n=2**14, r=8, p=1, dklen=32)
    return base64.urlsafe_b64encode(raw)


class CredentialCipher:
    """Encrypt/decrypt credentials with a secret-derived Fernet key."""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError(
                "An encryption secret is required. Set encryption.secret_key in "
                "config.json or ENCRYPTION_SECRET_KEY in the environment."
            )
        self._fernet = Fernet(derive_key(secret))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt_strict(self, ciphertext: str) -> str:
        """Decrypt or raise CredentialDecryptionError."""
        if not isinstance(ciphertext, str):
            raise CredentialDecryptionError(f"Stored value is {type(ciphertext).__name__}, not a string")
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except (InvalidToken, ValueError, UnicodeError) as e:
            raise CredentialDecryptionError("Stored value could not be decrypted") from e

    def decrypt(self, value: str) -> str:
        """Decrypt a stored value, falling back to the value itself.

        Legacy rows hold unencrypted tokens. Those fail decryption and are
        returned unchanged with a warning.
        """
        try:
            return self.decrypt_strict(value)
        except CredentialDecryptionError:
            logger.warning("Credential could not be decrypted, using stored value as-is (legacy plaintext?)")
            return value
