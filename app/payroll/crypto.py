"""Encryption for stored payroll OAuth tokens.

Tokens are AES-256-GCM encrypted with a random 12-byte nonce. The stored
value is base64(nonce + ciphertext + tag), the same layout the OAuth connect
flow writes.
"""
import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.config import settings

NONCE_SIZE = 12
KEY_SIZE = 32


class TokenDecryptionError(Exception):
    """Raised when a stored token cannot be decrypted with the current key."""


def derive_key(secret: str) -> bytes:
    """Pad with "0" or truncate the secret to 32 characters."""
    key = secret.ljust(KEY_SIZE, "0")[:KEY_SIZE].encode("utf-8")
    if len(key) != KEY_SIZE:
        raise ValueError("Encryption secret must be ASCII to derive a 256-bit key")
    return key


class TokenCipher:
    """Encrypts and decrypts OAuth tokens."""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Encryption secret is required")
        self._aesgcm = AESGCM(derive_key(secret))

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, token: str) -> str:
        try:
            combined = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError) as e:
            raise TokenDecryptionError("Stored token is not valid base64") from e

        if len(combined) <= NONCE_SIZE:
            raise TokenDecryptionError("Stored token is too short")

        nonce, ciphertext = combined[:NONCE_SIZE], combined[NONCE_SIZE:]
        try:
            return self._aesgcm.decrypt(nonce, ciphertext, None).decode("utf-8")
        except InvalidTag as e:
            raise TokenDecryptionError("Stored token failed authentication") from e


def get_token_cipher() -> TokenCipher:
    """Cipher keyed with PAYROLL_ENCRYPTION_KEY."""
    return TokenCipher(settings.PAYROLL_ENCRYPTION_KEY)
