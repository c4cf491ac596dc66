"""Fernet-based symmetric encryption for seeded credential field blobs."""

import functools
import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from seedkit.config import config
from seedkit.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CredentialEncryption:
    """Encrypts credential field blobs the way the application stores them.

    If no key is supplied an ephemeral key is generated and a WARNING is
    logged. Seeded credentials will not decrypt in an application that uses
    a different key. Pass ``SEEDKIT_CREDENTIAL_ENCRYPTION_KEY`` (a URL-safe
    base64 32-byte Fernet key) matching the application under test.
    """

    def __init__(self, key: str = "") -> None:
        if not key:
            self._fernet = Fernet(Fernet.generate_key())
            logger.warning(
                "CredentialEncryption: no encryption key provided, generated an ephemeral key. "
                "Set SEEDKIT_CREDENTIAL_ENCRYPTION_KEY to the application's key."
            )
        else:
            try:
                self._fernet = Fernet(key.encode())
            except ValueError as exc:
                raise ConfigurationError(f"Invalid Fernet key: {exc}") from exc

    def encrypt_data(self, data: dict[str, Any]) -> str:
        """Serialize *data* as JSON and return the Fernet token string."""
        return self._fernet.encrypt(json.dumps(data, sort_keys=True).encode()).decode()

    def decrypt_data(self, token: str) -> dict[str, Any]:
        """Inverse of :meth:`encrypt_data`.

        Raises:
            ConfigurationError: the token was produced with a different key.
        """
        try:
            return json.loads(self._fernet.decrypt(token.encode()).decode())
        except InvalidToken as exc:
            raise ConfigurationError("Credential decryption failed: wrong key or tampered token") from exc


@functools.lru_cache(maxsize=1)
def get_encryption() -> CredentialEncryption:
    """Process-wide instance keyed by SEEDKIT_CREDENTIAL_ENCRYPTION_KEY."""
    return CredentialEncryption(config.credential_encryption_key)
