"""
AES-GCM Authenticated Encryption
================================

AES-GCM primitive used by the machine code envelope.

Security Properties:
    - 128, 192 or 256-bit key (128-bit default, matching issued codes)
    - 96-bit nonce (NIST recommended)
    - 128-bit authentication tag
    - Fresh random nonce for every encryption

NIST SP 800-38D Compliance:
    - GCM mode with 96-bit IV
    - Unique nonce for each encryption under same key

WARNING:
    - Never reuse (key, nonce) pairs; a constant nonce under a fixed key
      breaks confidentiality of every message sealed with it
    - Always verify tag before using plaintext
"""

from __future__ import annotations

import hmac
import secrets
from dataclasses import dataclass
from typing import Final

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

AES_KEY_SIZES: Final[tuple[int, ...]] = (16, 24, 32)
AES_DEFAULT_KEY_SIZE: Final[int] = 16  # AES-128
AES_NONCE_SIZE: Final[int] = 12  # 96 bits (NIST recommended for GCM)
AES_TAG_SIZE: Final[int] = 16  # 128 bits


@dataclass(frozen=True, slots=True)
class AesGcmResult:
    """
    Immutable result of AES-GCM encryption.

    Attributes:
        ciphertext: Encrypted data with appended authentication tag
        nonce: Unique nonce used for this encryption (must be stored with ciphertext)
    """

    ciphertext: bytes
    nonce: bytes

    def __repr__(self) -> str:
        return f"AesGcmResult(ciphertext_len={len(self.ciphertext)}, nonce_len={len(self.nonce)})"


class AesGcmCipher:
    """
    AES-GCM Authenticated Encryption with Associated Data (AEAD).

    Usage:
        cipher = AesGcmCipher()
        key = cipher.generate_key()

        result = cipher.encrypt(plaintext, key)
        plaintext = cipher.decrypt(result.ciphertext, result.nonce, key)

    Security Notes:
        - The key is supplied by the caller and never stored here
        - A new nonce is drawn from the OS CSPRNG on every call
    """

    __slots__ = ()

    @staticmethod
    def generate_key(size: int = AES_DEFAULT_KEY_SIZE) -> bytes:
        """
        Generate a cryptographically secure random AES key.

        Args:
            size: Key size in bytes (16, 24 or 32)
        """
        AesGcmCipher.validate_key_size(size)
        return secrets.token_bytes(size)

    @staticmethod
    def generate_nonce() -> bytes:
        """
        Generate a cryptographically secure random nonce.

        Security:
            96-bit nonces with random generation have negligible collision
            probability for up to 2^32 encryptions under same key.
        """
        return secrets.token_bytes(AES_NONCE_SIZE)

    @staticmethod
    def validate_key_size(size: int) -> None:
        if size not in AES_KEY_SIZES:
            raise ValueError(
                f"Key must be 16, 24 or 32 bytes, got {size}"
            )

    def encrypt(
        self,
        plaintext: bytes,
        key: bytes,
    ) -> AesGcmResult:
        """
        Encrypt plaintext using AES-GCM.

        Args:
            plaintext: Data to encrypt (can be empty)
            key: 16, 24 or 32-byte key

        Returns:
            AesGcmResult containing ciphertext and nonce

        Raises:
            ValueError: If key has the wrong size
        """
        self.validate_key_size(len(key))

        nonce = self.generate_nonce()
        ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)

        return AesGcmResult(ciphertext=ciphertext, nonce=nonce)

    def decrypt(
        self,
        ciphertext: bytes,
        nonce: bytes,
        key: bytes,
    ) -> bytes:
        """
        Decrypt ciphertext using AES-GCM with integrity verification.

        Raises:
            ValueError: If parameters are invalid
            cryptography.exceptions.InvalidTag: If authentication fails

        Security Notes:
            - Integrity is verified BEFORE any plaintext is returned
            - InvalidTag means data was tampered or wrong key or nonce
        """
        self.validate_key_size(len(key))
        if len(nonce) != AES_NONCE_SIZE:
            raise ValueError(f"Nonce must be exactly {AES_NONCE_SIZE} bytes")
        if len(ciphertext) < AES_TAG_SIZE:
            raise ValueError("Ciphertext too short (missing authentication tag)")

        return AESGCM(key).decrypt(nonce, ciphertext, None)

    @staticmethod
    def constant_time_compare(a: bytes, b: bytes) -> bool:
        """
        Perform constant-time comparison of two byte strings.

        Security:
            Uses hmac.compare_digest which is designed to be constant-time
        """
        return hmac.compare_digest(a, b)
