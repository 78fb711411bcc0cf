"""
MachineCode Exception Hierarchy
===============================

Recoverable failures inherit from MachineCodeError so the presentation
layer can map them to exit codes with a single handler.

DuplicateKeyError is the exception: it signals two collaborators claiming
the same component identity in one collection pass. That is a logic defect,
not bad input, so it derives from RuntimeError and is never caught by
``except MachineCodeError``.
"""

from __future__ import annotations


class DuplicateKeyError(RuntimeError):
    """
    Raised when a component key is inserted twice into one registry.

    This is a HARD FAILURE - the collection pass must abort.
    """

    def __init__(self, key: object) -> None:
        super().__init__(f"Component with name '{key}' already exists")
        self.key = key


class MachineCodeError(Exception):
    """Base exception for all recoverable MachineCode errors."""


class UnknownKeyError(MachineCodeError):
    """Raised when a key string is outside the closed component key space."""

    def __init__(self, key_string: str) -> None:
        super().__init__(f"Unknown component key: {key_string!r}")
        self.key_string = key_string


class CollectionError(MachineCodeError):
    """
    Raised when an external probe fails.

    Covers missing tools, permission problems, non-zero exit status,
    timeouts and output that does not contain the expected attribute.
    """

    def __init__(self, component: str, reason: str) -> None:
        super().__init__(f"Failed to collect {component}: {reason}")
        self.component = component
        self.reason = reason


class AuthenticationError(MachineCodeError):
    """Raised when authenticated decryption fails (tampered, foreign or wrong key)."""


class DecodeError(MachineCodeError):
    """Raised when a machine code or serialized registry is malformed."""


class KeyMaterialError(MachineCodeError):
    """Raised when no usable encryption key can be resolved."""
