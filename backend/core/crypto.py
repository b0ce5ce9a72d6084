# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Cipher engine – AES-256-GCM encryption of secret strings at rest.

No other module should touch raw crypto directly.  The engine is an explicit
object: ``main.py`` creates one per process, the startup hook loads the
master key into it, and every service receives it by handle.  Tests build
their own engine around a throw-away key.

Storage format
--------------
ciphertext : base64( ciphertext || 16-byte GCM tag )
iv         : base64( 12-byte nonce )
"""

import base64
import binascii
import secrets
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from core.errors import DecryptionError, EngineNotReady

KEY_LENGTH = 32   # AES-256
NONCE_SIZE = 12   # 96-bit nonce per NIST SP 800-38D


def generate_key() -> str:
    """Return a fresh base64-encoded 32-byte key (for etc/app.conf)."""
    return base64.b64encode(secrets.token_bytes(KEY_LENGTH)).decode("ascii")


class CipherEngine:
    """Holds the master key and encrypts / decrypts secret strings."""

    def __init__(self):
        self._aesgcm: Optional[AESGCM] = None

    @classmethod
    def from_key(cls, master_key_b64: str) -> "CipherEngine":
        engine = cls()
        engine.initialize(master_key_b64)
        return engine

    # -- lifecycle ---------------------------------------------------------

    def initialize(self, master_key_b64: str) -> None:
        """
        Load the base64-encoded master key.  Must decode to exactly 32
        bytes, otherwise the process should refuse to start.
        """
        try:
            key = base64.b64decode(master_key_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise RuntimeError("MASTER_ENCRYPTION_KEY is not valid base64") from exc
        if len(key) != KEY_LENGTH:
            raise RuntimeError("MASTER_ENCRYPTION_KEY must decode to exactly 32 bytes")
        self._aesgcm = AESGCM(key)

    @property
    def ready(self) -> bool:
        return self._aesgcm is not None

    def _cipher(self) -> AESGCM:
        if self._aesgcm is None:
            raise EngineNotReady()
        return self._aesgcm

    # -- operations --------------------------------------------------------

    def encrypt(self, plaintext: str) -> tuple[str, str]:
        """
        Encrypt *plaintext* under a fresh random nonce.

        Returns ``(ciphertext_b64, iv_b64)``.
        """
        aesgcm = self._cipher()
        iv = secrets.token_bytes(NONCE_SIZE)
        ct_and_tag = aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        return (
            base64.b64encode(ct_and_tag).decode("ascii"),
            base64.b64encode(iv).decode("ascii"),
        )

    def encrypt_with_iv(self, plaintext: str, iv_b64: str) -> str:
        """
        Encrypt *plaintext* under an existing nonce.

        Only for the second secret of a row that stores a single iv; see
        ``CredentialResolver.seal_inline``.
        """
        aesgcm = self._cipher()
        iv = self._b64(iv_b64, "iv")
        if len(iv) != NONCE_SIZE:
            raise DecryptionError("Stored iv has an invalid length")
        ct_and_tag = aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        return base64.b64encode(ct_and_tag).decode("ascii")

    def decrypt(self, ciphertext_b64: str, iv_b64: str) -> str:
        """
        Decrypt a value produced by :meth:`encrypt` / :meth:`encrypt_with_iv`.

        Raises ``DecryptionError`` when the GCM tag does not verify (wrong
        key after a rotation, mismatched iv, tampered data).
        """
        aesgcm = self._cipher()
        iv = self._b64(iv_b64, "iv")
        ct_and_tag = self._b64(ciphertext_b64, "ciphertext")
        try:
            plaintext_bytes = aesgcm.decrypt(iv, ct_and_tag, None)
        except (InvalidTag, ValueError) as exc:
            raise DecryptionError("Decryption failed – key or iv does not match") from exc
        return plaintext_bytes.decode("utf-8")

    def can_decrypt(self, ciphertext_b64: str, iv_b64: Optional[str]) -> bool:
        """True when *ciphertext_b64* opens with the current key and *iv_b64*."""
        if not ciphertext_b64 or not iv_b64:
            return False
        try:
            self.decrypt(ciphertext_b64, iv_b64)
        except DecryptionError:
            return False
        return True

    @staticmethod
    def _b64(value: str, what: str) -> bytes:
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise DecryptionError(f"Stored {what} is not valid base64") from exc
