"""
Machine Code Envelope
=====================

Turns serialized registry plaintext into a portable machine code and back.

Wire format:
    base64 (standard alphabet, no padding) of the compact JSON document
    {"n": [nonce bytes...], "v": [ciphertext bytes...]}

The envelope carries no key material and no algorithm identifier: issuer
and verifier share the AES-GCM key out of band.

Key resolution order:
    1. Explicit key passed by the caller
    2. ENCRYPTION_KEY environment variable (raw UTF-8 bytes)
    3. Freshly generated random key, only when explicitly allowed

An ephemeral key lives as long as the process; codes sealed with it cannot
be checked later unless the caller persists the key.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
import secrets
from dataclasses import dataclass
from typing import Any, Final, Mapping, Optional

from cryptography.exceptions import InvalidTag

from machinecode.core.crypto.aes_gcm import (
    AES_KEY_SIZES,
    AES_NONCE_SIZE,
    AES_TAG_SIZE,
    AesGcmCipher,
)
from machinecode.core.exceptions import AuthenticationError, DecodeError, KeyMaterialError

ENCRYPTION_KEY_ENV: Final[str] = "ENCRYPTION_KEY"

# Printable keys from generate_key_text(): 32 URL-safe characters, 192 bits of entropy
KEY_TEXT_ENTROPY_BYTES: Final[int] = 24


@dataclass(frozen=True, slots=True)
class Envelope:
    """
    Immutable nonce + ciphertext pair.

    Attributes:
        nonce: 96-bit nonce used for this ciphertext only
        ciphertext: AES-GCM output with appended authentication tag
    """

    nonce: bytes
    ciphertext: bytes

    def __repr__(self) -> str:
        return f"Envelope(nonce_len={len(self.nonce)}, ciphertext_len={len(self.ciphertext)})"

    def to_document(self) -> dict[str, list[int]]:
        return {"n": list(self.nonce), "v": list(self.ciphertext)}

    @classmethod
    def from_document(cls, document: Any) -> Envelope:
        """
        Rebuild an envelope from its JSON document.

        Raises:
            DecodeError: If the document does not have the envelope shape
        """
        if not isinstance(document, dict) or set(document) != {"n", "v"}:
            raise DecodeError("Machine code is not an envelope document")
        nonce = _bytes_from_list(document["n"], "nonce")
        ciphertext = _bytes_from_list(document["v"], "ciphertext")
        if len(nonce) != AES_NONCE_SIZE:
            raise DecodeError(f"Nonce must be {AES_NONCE_SIZE} bytes, got {len(nonce)}")
        if len(ciphertext) < AES_TAG_SIZE:
            raise DecodeError("Ciphertext too short (missing authentication tag)")
        return cls(nonce=nonce, ciphertext=ciphertext)

    def encode(self) -> str:
        """Text-encode the envelope as a machine code."""
        document = json.dumps(self.to_document(), separators=(",", ":"))
        return base64.b64encode(document.encode("ascii")).decode("ascii").rstrip("=")

    @classmethod
    def decode(cls, code: str) -> Envelope:
        """
        Parse a machine code.

        Raises:
            DecodeError: If the text is not a valid envelope encoding
        """
        text = code.strip()
        if not text:
            raise DecodeError("Machine code is empty")
        try:
            raw = base64.b64decode(text + "=" * (-len(text) % 4), validate=True)
            document = json.loads(raw.decode("utf-8"))
        except (binascii.Error, ValueError, RecursionError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            raise DecodeError("Machine code is not valid base64 JSON") from e
        return cls.from_document(document)


def _bytes_from_list(value: Any, name: str) -> bytes:
    if not isinstance(value, list):
        raise DecodeError(f"Envelope {name} must be a byte array")
    try:
        return bytes(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Envelope {name} must be a byte array") from e


def _key_bytes(text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise KeyMaterialError("Encryption key is not valid UTF-8 text") from e


def validate_key(key: bytes) -> bytes:
    """
    Check key length.

    Raises:
        KeyMaterialError: If the key is not 16, 24 or 32 bytes
    """
    if len(key) not in AES_KEY_SIZES:
        raise KeyMaterialError(
            f"Encryption key must be 16, 24 or 32 bytes, got {len(key)}"
        )
    return key


def resolve_key(
    key: Optional[bytes | str] = None,
    environ: Optional[Mapping[str, str]] = None,
    allow_ephemeral: bool = False,
) -> bytes:
    """
    Resolve the envelope key.

    Args:
        key: Explicit key bytes or text (text is UTF-8 encoded)
        environ: Environment mapping (defaults to os.environ)
        allow_ephemeral: Generate a random key when no other source exists

    Returns:
        Validated key bytes

    Raises:
        KeyMaterialError: If no key is available or it has the wrong size
    """
    if key is not None:
        return validate_key(_key_bytes(key) if isinstance(key, str) else key)

    env = os.environ if environ is None else environ
    env_key = env.get(ENCRYPTION_KEY_ENV)
    if env_key:
        return validate_key(_key_bytes(env_key))

    if allow_ephemeral:
        return AesGcmCipher.generate_key()

    raise KeyMaterialError(
        f"No encryption key: pass one explicitly or set {ENCRYPTION_KEY_ENV}"
    )


def generate_key_text() -> str:
    """Random printable key usable as ENCRYPTION_KEY (32 bytes once encoded)."""
    return secrets.token_urlsafe(KEY_TEXT_ENTROPY_BYTES)


class EnvelopeCipher:
    """
    Seals and opens machine code envelopes under one key.

    Usage:
        cipher = EnvelopeCipher(resolve_key())
        code = cipher.encrypt('{"userName":"alice"}')
        plaintext = cipher.decrypt(code)
    """

    __slots__ = ("_key", "_aes")

    def __init__(self, key: bytes) -> None:
        self._key = validate_key(key)
        self._aes = AesGcmCipher()

    def __repr__(self) -> str:
        return f"EnvelopeCipher(key_bits={len(self._key) * 8})"

    def seal(self, plaintext: bytes) -> Envelope:
        result = self._aes.encrypt(plaintext, self._key)
        return Envelope(nonce=result.nonce, ciphertext=result.ciphertext)

    def open(self, envelope: Envelope) -> bytes:
        """
        Authenticate and decrypt an envelope.

        Raises:
            AuthenticationError: If nonce, ciphertext or key do not match
        """
        try:
            return self._aes.decrypt(envelope.ciphertext, envelope.nonce, self._key)
        except InvalidTag:
            raise AuthenticationError(
                "Machine code failed authentication (tampered, foreign or wrong key)"
            ) from None

    def encrypt(self, value: str) -> str:
        return self.seal(value.encode("utf-8")).encode()

    def decrypt(self, code: str) -> str:
        """
        Decrypt a machine code to its plaintext.

        Raises:
            DecodeError: If the code is malformed
            AuthenticationError: If integrity verification fails
        """
        plaintext = self.open(Envelope.decode(code))
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("Machine code plaintext is not UTF-8") from e


def encrypt(key: bytes, value: str) -> str:
    """Convenience wrapper: seal ``value`` under ``key``."""
    return EnvelopeCipher(key).encrypt(value)


def decrypt(key: bytes, code: str) -> str:
    """Convenience wrapper: open ``code`` under ``key``."""
    return EnvelopeCipher(key).decrypt(code)
