"""Tests for payroll token encryption."""

import base64
import os

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.payroll.crypto import (
    TokenCipher,
    TokenDecryptionError,
    derive_key,
    get_token_cipher,
)


class TestDeriveKey:
    """Tests for the secret-to-key derivation."""

    def test_short_secret_padded_with_zeros(self):
        assert derive_key("abc") == b"abc" + b"0" * 29

    def test_long_secret_truncated(self):
        assert derive_key("x" * 40) == b"x" * 32

    def test_non_ascii_secret_rejected(self):
        with pytest.raises(ValueError):
            derive_key("é" * 32)


class TestTokenCipher:
    """Tests for AES-GCM token storage."""

    def test_reads_tokens_written_by_connect_flow(self):
        """nonce + ciphertext, base64, key padded to 32 bytes."""
        nonce = os.urandom(12)
        ciphertext = AESGCM(b"my-secret".ljust(32, b"0")).encrypt(nonce, b"access-123", None)
        stored = base64.b64encode(nonce + ciphertext).decode()

        assert TokenCipher("my-secret").decrypt(stored) == "access-123"

    def test_encrypt_uses_fresh_nonce(self):
        cipher = TokenCipher("my-secret")

        first = cipher.encrypt("token")
        second = cipher.encrypt("token")

        assert first != second
        assert cipher.decrypt(first) == "token"

    def test_wrong_key_fails(self):
        stored = TokenCipher("key-one").encrypt("token")

        with pytest.raises(TokenDecryptionError):
            TokenCipher("key-two").decrypt(stored)

    def test_invalid_base64(self):
        with pytest.raises(TokenDecryptionError):
            TokenCipher("my-secret").decrypt("not base64!!")

    def test_too_short(self):
        with pytest.raises(TokenDecryptionError):
            TokenCipher("my-secret").decrypt(base64.b64encode(b"short").decode())

    def test_blank_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenCipher("")

    def test_configured_cipher(self):
        cipher = get_token_cipher()

        assert cipher.decrypt(cipher.encrypt("refresh-456")) == "refresh-456"
