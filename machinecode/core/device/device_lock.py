"""
Device Lock
===========

Issue/check protocol binding a machine code to the machine that issued it.

Security Properties:
- Hard failure on mismatch (no partial or fuzzy match policy)
- Components are sealed with AES-GCM, never shown in clear by the code
- Constant-time comparison of each attribute

Usage Pattern:
1. Issue: collect components, serialize, encrypt, hand out the code
2. Check: decrypt the code, re-collect components, compare key by key
3. On mismatch: VerificationMismatch, no bypass

Comparison is one-directional: every issued component must be present in
the live registry with the identical value; extra live components are
ignored.

WARNING:
- Hardware or OS changes (renamed device, upgraded distro) fail the check
- Issuer and verifier must share the same key
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Optional, Sequence

from machinecode.core.builder import collect_components
from machinecode.core.components.keys import ComponentKey, key_to_str
from machinecode.core.components.registry import DeviceComponents
from machinecode.core.components.serialization import dumps, loads
from machinecode.core.crypto.aes_gcm import AesGcmCipher
from machinecode.core.crypto.envelope import EnvelopeCipher, resolve_key
from machinecode.core.exceptions import MachineCodeError

Collector = Callable[[], DeviceComponents]


class MismatchReason(Enum):
    """Why an issued component failed verification."""
    MISSING = "missing"
    DIFFERS = "differs"


@dataclass(frozen=True, slots=True)
class ComponentMismatch:
    """
    One issued component that the live machine does not reproduce.

    Values are deliberately not stored: the issued values stay sealed.
    """
    key: ComponentKey
    reason: MismatchReason

    def __str__(self) -> str:
        return f"{key_to_str(self.key)}: {self.reason.value}"


class VerificationMismatch(MachineCodeError):
    """
    Raised when the current machine does not match an issued code.

    This is a HARD FAILURE - no bypass is allowed.
    """

    def __init__(self, mismatches: Sequence[ComponentMismatch]) -> None:
        self.mismatches = tuple(mismatches)
        names = ", ".join(str(mismatch) for mismatch in self.mismatches)
        super().__init__(f"Device does not match machine code ({names})")


@dataclass(frozen=True, slots=True)
class VerifiedDevice:
    """
    Result of a successful check.

    Attributes:
        issued: Components decoded from the machine code
        live: Components collected on the current machine
    """
    issued: DeviceComponents
    live: DeviceComponents

    def __repr__(self) -> str:
        return f"VerifiedDevice(components={len(self.issued)})"


def compare_components(
    issued: DeviceComponents,
    live: DeviceComponents,
) -> list[ComponentMismatch]:
    """
    Compare issued components against live ones.

    Returns:
        Mismatches in key order (empty when every issued component matches)
    """
    mismatches: list[ComponentMismatch] = []
    for key, expected in issued.items_sorted():
        actual = live.get(key)
        if actual is None:
            mismatches.append(ComponentMismatch(key, MismatchReason.MISSING))
        elif not AesGcmCipher.constant_time_compare(
            expected.encode("utf-8"), actual.encode("utf-8")
        ):
            mismatches.append(ComponentMismatch(key, MismatchReason.DIFFERS))
    return mismatches


class DeviceLock:
    """
    Machine code issuer and verifier.

    Usage:
        lock = DeviceLock.from_environment()

        code = lock.issue()

        # Later, possibly on another machine
        try:
            lock.check(code)
        except VerificationMismatch:
            # HARD FAILURE - abort operation
            raise

    Security Notes:
        - NEVER bypass verification failures
        - Decryption failures are terminal: the code is corrupt or foreign
    """

    __slots__ = ("_cipher", "_collect")

    def __init__(self, key: bytes, collect: Optional[Collector] = None) -> None:
        """
        Initialize the device lock.

        Args:
            key: AES-GCM key shared by issuer and verifier
            collect: Collection pass producing the live registry
        """
        self._cipher = EnvelopeCipher(key)
        self._collect = collect or collect_components

    @classmethod
    def from_environment(
        cls,
        key: Optional[bytes | str] = None,
        environ: Optional[Mapping[str, str]] = None,
        allow_ephemeral: bool = False,
        collect: Optional[Collector] = None,
    ) -> DeviceLock:
        """Build a lock with the key resolved by resolve_key()."""
        return cls(
            resolve_key(key, environ=environ, allow_ephemeral=allow_ephemeral),
            collect=collect,
        )

    def collect(self) -> DeviceComponents:
        """Run the collection pass on the current machine."""
        return self._collect()

    def issue(self, components: Optional[DeviceComponents] = None) -> str:
        """
        Produce a machine code.

        Args:
            components: Pre-collected registry (collected now if omitted)

        Raises:
            CollectionError: If collection fails
        """
        if components is None:
            components = self.collect()
        return self._cipher.encrypt(dumps(components))

    def decode(self, code: str) -> DeviceComponents:
        """
        Decrypt a machine code into the issued registry.

        Raises:
            DecodeError: If the code is malformed
            AuthenticationError: If the code was tampered with or sealed with another key
            UnknownKeyError: If the code names components this version does not know
        """
        return loads(self._cipher.decrypt(code))

    def check(
        self,
        code: str,
        live: Optional[DeviceComponents] = None,
    ) -> VerifiedDevice:
        """
        Verify the current machine against a machine code.

        THIS IS THE CRITICAL SECURITY FUNCTION.

        Args:
            code: Machine code produced by issue()
            live: Pre-collected live registry (collected now if omitted)

        Returns:
            VerifiedDevice if every issued component matches

        Raises:
            DecodeError, AuthenticationError, UnknownKeyError: Code is unusable
            CollectionError: If collection fails
            VerificationMismatch: If any issued component is missing or differs
        """
        issued = self.decode(code)
        if live is None:
            live = self.collect()

        mismatches = compare_components(issued, live)
        if mismatches:
            raise VerificationMismatch(mismatches)

        return VerifiedDevice(issued=issued, live=live)
