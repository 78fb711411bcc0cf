"""Tests for HostProbe core component collection."""

from __future__ import annotations

import getpass
import platform
import socket
from pathlib import Path

import pytest

from machinecode.core.exceptions import CollectionError
from machinecode.plugins import host as host_module
from machinecode.plugins.host import HostProbe, normalize_arch


@pytest.mark.parametrize("machine, expected", [
    ("AMD64", "x86_64"),
    ("x86_64", "x86_64"),
    ("aarch64", "arm64"),
    ("arm64", "arm64"),
    ("i386", "i686"),
    ("riscv64", "riscv64"),
])
def test_normalize_arch(machine: str, expected: str) -> None:
    assert normalize_arch(machine) == expected


class TestNames:
    """User, host and device names."""

    def test_user_name(self, monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
        monkeypatch.setattr(getpass, "getuser", lambda: "alice")
        assert HostProbe("linux", fake_runner, {}).user_name() == "alice"

    def test_user_name_unavailable(self, monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
        def no_user() -> str:
            raise OSError("no login name")

        monkeypatch.setattr(getpass, "getuser", no_user)
        with pytest.raises(CollectionError, match="userName"):
            HostProbe("linux", fake_runner, {}).user_name()

    def test_host_name(self, monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
        monkeypatch.setattr(socket, "gethostname", lambda: "alice-laptop")
        assert HostProbe("linux", fake_runner, {}).host_name() == "alice-laptop"

    def test_macos_device_name_from_scutil(self, runner_factory) -> None:
        runner = runner_factory({"scutil": "Alice's MacBook Pro"})
        assert HostProbe("darwin", runner, {}).device_name() == "Alice's MacBook Pro"
        assert runner.calls == [(["scutil", "--get", "ComputerName"], "deviceName")]

    def test_windows_device_name_from_environment(self, fake_runner) -> None:
        probe = HostProbe("windows", fake_runner, {"COMPUTERNAME": "DESKTOP-42"})
        assert probe.device_name() == "DESKTOP-42"

    def test_linux_pretty_hostname(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, fake_runner
    ) -> None:
        machine_info = tmp_path / "machine-info"
        machine_info.write_text('CHASSIS=laptop\nPRETTY_HOSTNAME="Alice\'s Laptop"\n')
        monkeypatch.setattr(host_module, "MACHINE_INFO_PATH", machine_info)
        assert HostProbe("linux", fake_runner, {}).device_name() == "Alice's Laptop"

    def test_linux_falls_back_to_host_name(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, fake_runner
    ) -> None:
        monkeypatch.setattr(host_module, "MACHINE_INFO_PATH", tmp_path / "missing")
        monkeypatch.setattr(socket, "gethostname", lambda: "alice-laptop")
        assert HostProbe("linux", fake_runner, {}).device_name() == "alice-laptop"

    def test_windows_falls_back_to_host_name(
        self, monkeypatch: pytest.MonkeyPatch, fake_runner
    ) -> None:
        monkeypatch.setattr(socket, "gethostname", lambda: "desktop-42")
        assert HostProbe("windows", fake_runner, {}).device_name() == "desktop-42"

    def test_macos_scutil_failure_propagates(self, fake_runner) -> None:
        with pytest.raises(CollectionError):
            HostProbe("darwin", fake_runner, {}).device_name()


class TestPlatform:
    """Platform, distribution and architecture."""

    @pytest.mark.parametrize("system, expected", [
        ("Windows", "Windows"),
        ("Darwin", "Mac OS"),
        ("Linux", "Linux"),
        ("FreeBSD", "BSD"),
    ])
    def test_platform_name(self, system: str, expected: str, fake_runner) -> None:
        assert HostProbe(system, fake_runner, {}).platform_name() == expected

    def test_unknown_platform_uses_system_name(
        self, monkeypatch: pytest.MonkeyPatch, fake_runner
    ) -> None:
        monkeypatch.setattr(platform, "system", lambda: "SunOS")
        assert HostProbe("sunos", fake_runner, {}).platform_name() == "SunOS"

    def test_linux_distro(self, monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
        monkeypatch.setattr(
            platform, "freedesktop_os_release",
            lambda: {"NAME": "Ubuntu", "PRETTY_NAME": "Ubuntu 24.04 LTS"},
        )
        assert HostProbe("linux", fake_runner, {}).os_distro() == "Ubuntu 24.04 LTS"

    def test_linux_distro_unavailable(self, monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
        def missing():
            raise OSError("no os-release")

        monkeypatch.setattr(platform, "freedesktop_os_release", missing)
        with pytest.raises(CollectionError, match="osDistro"):
            HostProbe("linux", fake_runner, {}).os_distro()

    def test_macos_distro(self, monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
        monkeypatch.setattr(platform, "mac_ver", lambda: ("14.5", ("", "", ""), "arm64"))
        assert HostProbe("darwin", fake_runner, {}).os_distro() == "macOS 14.5"

    def test_windows_distro(self, monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
        monkeypatch.setattr(platform, "release", lambda: "11")
        assert HostProbe("windows", fake_runner, {}).os_distro() == "Windows 11"

    def test_cpu_arch(self, monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
        monkeypatch.setattr(platform, "machine", lambda: "AMD64")
        assert HostProbe("windows", fake_runner, {}).cpu_arch() == "x86_64"

    def test_cpu_arch_unknown(self, monkeypatch: pytest.MonkeyPatch, fake_runner) -> None:
        monkeypatch.setattr(platform, "machine", lambda: "")
        with pytest.raises(CollectionError):
            HostProbe("linux", fake_runner, {}).cpu_arch()


class TestDesktopEnvironment:
    """Desktop environment detection."""

    def test_macos(self, fake_runner) -> None:
        assert HostProbe("darwin", fake_runner, {}).desktop_env() == "Aqua"

    def test_windows(self, fake_runner) -> None:
        assert HostProbe("windows", fake_runner, {}).desktop_env() == "Windows"

    def test_linux_xdg(self, fake_runner) -> None:
        probe = HostProbe("linux", fake_runner, {"XDG_CURRENT_DESKTOP": "KDE"})
        assert probe.desktop_env() == "KDE"

    def test_linux_headless(self, fake_runner) -> None:
        assert HostProbe("linux", fake_runner, {}).desktop_env() == "Unknown"
