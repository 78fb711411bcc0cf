"""Tests for the machine code issue/check protocol.

Verifies:
    - A code checks against the machine it was issued on, and against any
      live registry that is a superset of the issued one.
    - Missing or differing components are reported by key name.
    - Corrupt, foreign and unknown-key codes are rejected before comparison.
"""

from __future__ import annotations

import pytest

from machinecode.core.components.keys import CoreKey, MacOSKey, namespaced
from machinecode.core.components.registry import DeviceComponents
from machinecode.core.crypto.envelope import ENCRYPTION_KEY_ENV, encrypt
from machinecode.core.device.device_lock import (
    ComponentMismatch,
    DeviceLock,
    MismatchReason,
    VerificationMismatch,
    compare_components,
)
from machinecode.core.exceptions import (
    AuthenticationError,
    DecodeError,
    KeyMaterialError,
    MachineCodeError,
    UnknownKeyError,
)


@pytest.fixture
def lock(key: bytes, alice_components: DeviceComponents) -> DeviceLock:
    return DeviceLock(key, collect=lambda: alice_components)


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


class TestCompareComponents:
    """One-directional comparison of issued against live."""

    def test_identical_registries_match(self, alice_components) -> None:
        assert compare_components(alice_components, alice_components) == []

    def test_extra_live_components_are_ignored(self, alice_components) -> None:
        live = DeviceComponents(alice_components.get_all()).insert(CoreKey.HOST_NAME, "box")
        assert compare_components(alice_components, live) == []

    def test_missing_and_differing_components(self, alice_components) -> None:
        live = (DeviceComponents()
                .insert(CoreKey.USER_NAME, "bob")
                .insert(CoreKey.CPU_ARCH, "x86_64"))
        assert compare_components(alice_components, live) == [
            ComponentMismatch(CoreKey.USER_NAME, MismatchReason.DIFFERS),
            ComponentMismatch(CoreKey.PLATFORM, MismatchReason.MISSING),
        ]

    def test_empty_issued_matches_anything(self, alice_components) -> None:
        assert compare_components(DeviceComponents(), alice_components) == []

    def test_mismatch_renders_key_and_reason(self) -> None:
        mismatch = ComponentMismatch(
            namespaced(MacOSKey.PLATFORM_SERIAL_NUMBER), MismatchReason.DIFFERS
        )
        assert str(mismatch) == "MacOS::platformSerialNumber: differs"


# ---------------------------------------------------------------------------
# Issue / check
# ---------------------------------------------------------------------------


class TestIssueAndCheck:
    """Full protocol with injected collection."""

    def test_check_on_issuing_machine(self, lock: DeviceLock, alice_components) -> None:
        verified = lock.check(lock.issue())
        assert verified.issued == alice_components
        assert verified.live == alice_components

    def test_issue_collects_when_not_given(self, key: bytes, alice_components) -> None:
        calls = []

        def collect() -> DeviceComponents:
            calls.append(1)
            return alice_components

        lock = DeviceLock(key, collect=collect)
        lock.issue()
        assert calls == [1]

    def test_decode_returns_issued_registry(self, lock: DeviceLock, alice_components) -> None:
        assert lock.decode(lock.issue()) == alice_components

    def test_live_superset_verifies(self, lock: DeviceLock, alice_components) -> None:
        live = (DeviceComponents(alice_components.get_all())
                .insert(namespaced(MacOSKey.PLATFORM_SERIAL_NUMBER), "C02XK0ABJG5J"))
        verified = lock.check(lock.issue(), live=live)
        assert len(verified.issued) == 3
        assert len(verified.live) == 4

    def test_other_user_fails(self, lock: DeviceLock) -> None:
        code = lock.issue()
        bob = (DeviceComponents()
               .insert(CoreKey.USER_NAME, "bob")
               .insert(CoreKey.PLATFORM, "Linux")
               .insert(CoreKey.CPU_ARCH, "x86_64"))

        with pytest.raises(VerificationMismatch) as exc_info:
            lock.check(code, live=bob)

        assert exc_info.value.mismatches == (
            ComponentMismatch(CoreKey.USER_NAME, MismatchReason.DIFFERS),
        )
        assert "userName: differs" in str(exc_info.value)

    def test_mismatch_message_hides_values(self, lock: DeviceLock) -> None:
        bob = DeviceComponents().insert(CoreKey.USER_NAME, "bob")
        with pytest.raises(VerificationMismatch) as exc_info:
            lock.check(lock.issue(), live=bob)
        message = str(exc_info.value)
        assert "alice" not in message
        assert "bob" not in message
        assert "platform: missing" in message

    def test_mismatch_is_recoverable_error(self) -> None:
        assert issubclass(VerificationMismatch, MachineCodeError)

    def test_verified_device_repr(self, lock: DeviceLock) -> None:
        assert repr(lock.check(lock.issue())) == "VerifiedDevice(components=3)"


# ---------------------------------------------------------------------------
# Unusable codes
# ---------------------------------------------------------------------------


class TestUnusableCodes:
    """Codes rejected before any comparison happens."""

    def test_code_from_other_key(self, key: bytes, other_key: bytes, alice_components) -> None:
        code = DeviceLock(other_key).issue(alice_components)
        with pytest.raises(AuthenticationError):
            DeviceLock(key, collect=lambda: alice_components).check(code)

    def test_corrupt_code(self, lock: DeviceLock) -> None:
        with pytest.raises(DecodeError):
            lock.check("definitely not a machine code")

    def test_code_with_unknown_component(self, key: bytes, lock: DeviceLock) -> None:
        code = encrypt(key, '{"userName":"alice","shoeSize":"42"}')
        with pytest.raises(UnknownKeyError):
            lock.check(code)

    def test_code_with_invalid_plaintext(self, key: bytes, lock: DeviceLock) -> None:
        code = encrypt(key, "userName: alice")
        with pytest.raises(DecodeError):
            lock.check(code)

    def test_no_collection_for_unusable_code(self, key: bytes) -> None:
        def collect() -> DeviceComponents:
            raise AssertionError("collection must not run")

        with pytest.raises(DecodeError):
            DeviceLock(key, collect=collect).check("garbage")


# ---------------------------------------------------------------------------
# Key resolution
# ---------------------------------------------------------------------------


class TestFromEnvironment:
    """Building a lock from the environment."""

    def test_uses_environment_key(self, key: bytes, alice_components) -> None:
        environ = {ENCRYPTION_KEY_ENV: key.decode()}
        issuer = DeviceLock.from_environment(environ=environ, collect=lambda: alice_components)
        code = issuer.issue()
        assert DeviceLock(key, collect=lambda: alice_components).check(code)

    def test_missing_key_fails(self) -> None:
        with pytest.raises(KeyMaterialError):
            DeviceLock.from_environment(environ={})

    def test_ephemeral_key_when_allowed(self, alice_components) -> None:
        lock = DeviceLock.from_environment(
            environ={}, allow_ephemeral=True, collect=lambda: alice_components
        )
        assert lock.check(lock.issue()).issued == alice_components
