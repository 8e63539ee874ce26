"""AES-256 helpers for encrypting world-state values at rest."""

from __future__ import annotations

import base64
import os
from dataclasses import dataclass

from cryptography.hazmat.primitives.ciphers.aead import AESGCM


NONCE_SIZE = 12
KEY_SIZE = 32


@dataclass
class CryptoService:
    """Encrypts and decrypts stored values using AES-256-GCM."""

    key: bytes

    @classmethod
    def from_base64_key(cls, key_b64: str) -> "CryptoService":
        key = base64.urlsafe_b64decode(key_b64.encode("utf-8"))
        if len(key) != KEY_SIZE:
            raise RuntimeError("Encryption key must decode to 32 bytes for AES-256.")
        return cls(key=key)

    @staticmethod
    def generate_base64_key() -> str:
        """Generate a base64-encoded 32-byte key."""
        return base64.urlsafe_b64encode(os.urandom(KEY_SIZE)).decode("utf-8")

    def encrypt_value(self, value: bytes, key: str) -> bytes:
        """Encrypt a value bound to its world-state key; returns nonce+ciphertext."""
        nonce = os.urandom(NONCE_SIZE)
        return nonce + AESGCM(self.key).encrypt(nonce, value, key.encode("utf-8"))

    def decrypt_value(self, stored: bytes, key: str) -> bytes:
        """Decrypt nonce+ciphertext written by ``encrypt_value`` for the same key."""
        nonce = stored[:NONCE_SIZE]
        return AESGCM(self.key).decrypt(nonce, stored[NONCE_SIZE:], key.encode("utf-8"))
