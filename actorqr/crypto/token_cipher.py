from __future__ import annotations

import base64
import os

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..errors import ConfigurationError
from ..models.config_models import MIN_PASSPHRASE_LENGTH

"""Write-only token format for QR payloads.

    v1.<iv>.<salt>.<ciphertext+tag>

Each segment is base64url without padding. iv is 12 random bytes, salt 16
random bytes, the key is PBKDF2-HMAC-SHA256(passphrase, salt, 100_000) -> 32
bytes, and the last segment is the AES-256-GCM ciphertext with its 16-byte tag
appended. The version prefix comes first so readers can dispatch on it.
"""

__all__ = [
    "TOKEN_VERSION",
    "TokenCipher",
    "b64url",
]

TOKEN_VERSION = "v1"
ITERATIONS = 100_000
KEY_LENGTH = 32  # AES-256
SALT_LENGTH = 16
IV_LENGTH = 12


def b64url(raw: bytes) -> str:
    """URL-safe base64 without '=' padding."""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


class TokenCipher:
    """Authenticated encryption of QR plaintext into a versioned token string."""

    def __init__(self, passphrase: str) -> None:
        if not passphrase or len(passphrase) < MIN_PASSPHRASE_LENGTH:
            raise ConfigurationError(
                f"QR_SECRET_KEY missing or too short (>= {MIN_PASSPHRASE_LENGTH} chars)"
            )
        self._passphrase = passphrase.encode("utf-8")

    def _derive_key(self, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=ITERATIONS,
        )
        return kdf.derive(self._passphrase)

    def encrypt(self, plaintext: str) -> str:
        # fresh salt and iv per call: equal inputs never yield equal tokens
        salt = os.urandom(SALT_LENGTH)
        iv = os.urandom(IV_LENGTH)
        key = self._derive_key(salt)
        ct_and_tag = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
        return f"{TOKEN_VERSION}.{b64url(iv)}.{b64url(salt)}.{b64url(ct_and_tag)}"
