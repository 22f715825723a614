"""
Token encryption — encrypt / decrypt OAuth tokens at rest.

Uses Fernet (AES-128-CBC + HMAC-SHA256) from the ``cryptography`` library.
The key comes from ``config.token_encryption_key``
(env var: ``TOKEN_ENCRYPTION_KEY``).

If no key is configured, encryption is **disabled** and tokens are stored
as plaintext (with a startup warning).  Generate a key with::

    python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
"""

from __future__ import annotations

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from config.settings import config

logger = logging.getLogger(__name__)


class TokenCipher:
    """Symmetric cipher for access tokens; a pass-through when no key is set."""

    def __init__(self, key: Optional[str] = None) -> None:
        self._fernet: Optional[Fernet] = None
        if not key:
            logger.warning(
                "TOKEN_ENCRYPTION_KEY not set — Notion tokens will be stored as plaintext."
            )
            return
        try:
            self._fernet = Fernet(key.encode() if isinstance(key, str) else key)
            logger.info("Token encryption enabled (Fernet/AES-128-CBC)")
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Invalid TOKEN_ENCRYPTION_KEY: {exc}") from exc

    @property
    def enabled(self) -> bool:
        return self._fernet is not None

    def encrypt(self, plaintext: str) -> str:
        """Return URL-safe base64 ciphertext, or the plaintext when disabled."""
        if self._fernet is None:
            return plaintext
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a token read from storage.

        Tokens stored before encryption was enabled are not valid Fernet
        tokens and are returned as-is.
        """
        if self._fernet is None:
            return ciphertext
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            return ciphertext


def default_cipher() -> TokenCipher:
    """Cipher built from the configured ``TOKEN_ENCRYPTION_KEY``."""
    return TokenCipher(config.token_encryption_key)
