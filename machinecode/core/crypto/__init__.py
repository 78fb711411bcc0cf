"""
MachineCode Cryptographic Core
==============================

Provides the authenticated encryption envelope for machine codes.

Architecture:
    1. AES-GCM: Symmetric AEAD primitive
    2. Envelope: nonce + ciphertext, base64 (no padding) over JSON
    3. Digest: One-way HMAC fingerprint (not used by issue/check)

Security Properties:
    - All encryption is authenticated (AEAD)
    - Fresh random nonce for every seal
    - Keys come from the caller or the environment, never from the envelope

WARNING: This module handles sensitive cryptographic material.
         Incorrect usage can compromise security.
"""

from machinecode.core.crypto.aes_gcm import AesGcmCipher
from machinecode.core.crypto.digest import DigestAlgorithm, fingerprint
from machinecode.core.crypto.envelope import (
    ENCRYPTION_KEY_ENV,
    Envelope,
    EnvelopeCipher,
    decrypt,
    encrypt,
    generate_key_text,
    resolve_key,
)

__all__ = [
    "AesGcmCipher",
    "DigestAlgorithm",
    "fingerprint",
    "ENCRYPTION_KEY_ENV",
    "Envelope",
    "EnvelopeCipher",
    "decrypt",
    "encrypt",
    "generate_key_text",
    "resolve_key",
]
