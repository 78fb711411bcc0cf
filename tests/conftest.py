"""Shared fixtures for machinecode tests.

Collaborators are replaced with in-memory fakes so that no test probes the
real machine or spawns a process.
"""

from __future__ import annotations

import logging
from typing import Iterator, Mapping, Optional, Sequence

import pytest

from machinecode.core.components.keys import CoreKey, MacOSKey, WindowsKey, namespaced
from machinecode.core.components.registry import DeviceComponents
from machinecode.core.exceptions import CollectionError

TEST_KEY = b"0123456789abcdef"
OTHER_KEY = b"fedcba9876543210"


class FakeHost:
    """HostProbe stand-in returning fixed values."""

    DEFAULTS = {
        "user_name": "alice",
        "device_name": "Alice's Laptop",
        "host_name": "alice-laptop",
        "platform_name": "Linux",
        "os_distro": "Ubuntu 24.04 LTS",
        "cpu_arch": "x86_64",
        "desktop_env": "GNOME",
    }

    def __init__(self, failing: Sequence[str] = (), **overrides: str) -> None:
        self.values = {**self.DEFAULTS, **overrides}
        self.failing = set(failing)
        self.calls: list[str] = []

    def _value(self, name: str) -> str:
        self.calls.append(name)
        if name in self.failing:
            raise CollectionError(name, "probe failed")
        return self.values[name]

    def user_name(self) -> str:
        return self._value("user_name")

    def device_name(self) -> str:
        return self._value("device_name")

    def host_name(self) -> str:
        return self._value("host_name")

    def platform_name(self) -> str:
        return self._value("platform_name")

    def os_distro(self) -> str:
        return self._value("os_distro")

    def cpu_arch(self) -> str:
        return self._value("cpu_arch")

    def desktop_env(self) -> str:
        return self._value("desktop_env")


class FakeRunner:
    """CommandRunner stand-in answering by program name."""

    def __init__(self, outputs: Optional[Mapping[str, str]] = None) -> None:
        self.outputs = dict(outputs or {})
        self.calls: list[tuple[list[str], str]] = []

    def run(self, args: Sequence[str], component: str) -> str:
        self.calls.append((list(args), component))
        if args[0] not in self.outputs:
            raise CollectionError(component, f"{args[0]} is not available")
        return self.outputs[args[0]]


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep real keys out of tests and leave no handlers on the package logger."""
    monkeypatch.delenv("ENCRYPTION_KEY", raising=False)
    monkeypatch.delenv("ENCRYPTION_KEY_PREFIX", raising=False)
    monkeypatch.setenv("MACHINECODE_LOGGING__ENABLE_CONSOLE", "false")
    yield
    logger = logging.getLogger("machinecode")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------


@pytest.fixture
def alice_components() -> DeviceComponents:
    """Registry as issued on Alice's machine."""
    return (DeviceComponents()
            .insert(CoreKey.USER_NAME, "alice")
            .insert(CoreKey.PLATFORM, "Linux")
            .insert(CoreKey.CPU_ARCH, "x86_64"))


@pytest.fixture
def mixed_components() -> DeviceComponents:
    """Registry with core and namespaced keys from both families."""
    return (DeviceComponents()
            .insert(namespaced(MacOSKey.PLATFORM_SERIAL_NUMBER), "C02XK0ABJG5J")
            .insert(CoreKey.USER_NAME, "alice")
            .insert(namespaced(WindowsKey.SYSTEM_DRIVE_SERIAL_NUMBER), "4A3B-91C2")
            .insert(CoreKey.OS_DISTRO, "Ubuntu 24.04 LTS"))


# ---------------------------------------------------------------------------
# Factories and keys
# ---------------------------------------------------------------------------


@pytest.fixture
def host_factory() -> type[FakeHost]:
    """FakeHost class, for tests that need custom values or failures."""
    return FakeHost


@pytest.fixture
def runner_factory() -> type[FakeRunner]:
    """FakeRunner class, for tests that need canned command output."""
    return FakeRunner


@pytest.fixture
def key() -> bytes:
    return TEST_KEY


@pytest.fixture
def other_key() -> bytes:
    return OTHER_KEY
