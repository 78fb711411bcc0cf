"""
Host Identity Probe
===================

Collects the platform independent core components.

Sources (OS-aware):
- User name: login name from the environment / password database
- Device name: pretty name (ComputerName on macOS, PRETTY_HOSTNAME on Linux,
  COMPUTERNAME on Windows), falling back to the host name
- Host name: network host name
- Platform, OS distribution, CPU architecture, desktop environment
"""

from __future__ import annotations

import getpass
import os
import platform
import socket
from pathlib import Path
from typing import Final, Mapping, Optional

from machinecode.core.exceptions import CollectionError
from machinecode.plugins.command import CommandRunner, require_value

MACHINE_INFO_PATH: Final[Path] = Path("/etc/machine-info")

_PLATFORM_NAMES: Final[dict[str, str]] = {
    "windows": "Windows",
    "darwin": "Mac OS",
    "linux": "Linux",
    "freebsd": "BSD",
    "openbsd": "BSD",
    "netbsd": "BSD",
}

_ARCH_ALIASES: Final[dict[str, str]] = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "x86-64": "x86_64",
    "aarch64": "arm64",
    "armv8": "arm64",
    "i386": "i686",
    "x86": "i686",
}


def normalize_arch(machine: str) -> str:
    """Map the many spellings of CPU architectures to one name."""
    lowered = machine.strip().lower()
    return _ARCH_ALIASES.get(lowered, lowered)


class HostProbe:
    """
    Core component collaborator.

    Each method returns one trimmed string or raises CollectionError.

    Args:
        system: Lowercase platform.system() value (auto-detected by default)
        runner: Command runner for tool-based probes
        environ: Environment mapping (defaults to os.environ)
    """

    __slots__ = ("_system", "_runner", "_environ")

    def __init__(
        self,
        system: Optional[str] = None,
        runner: Optional[CommandRunner] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._system = (system or platform.system()).lower()
        self._runner = runner or CommandRunner()
        self._environ = os.environ if environ is None else environ

    def user_name(self) -> str:
        try:
            name = getpass.getuser()
        except (KeyError, OSError) as e:
            raise CollectionError("userName", f"login name unavailable: {e}") from e
        return require_value("userName", name)

    def host_name(self) -> str:
        try:
            name = socket.gethostname()
        except OSError as e:
            raise CollectionError("hostName", str(e)) from e
        return require_value("hostName", name)

    def device_name(self) -> str:
        pretty: Optional[str] = None
        if self._system == "darwin":
            pretty = self._runner.run(["scutil", "--get", "ComputerName"], "deviceName")
        elif self._system == "windows":
            pretty = self._environ.get("COMPUTERNAME")
        elif self._system == "linux":
            pretty = self._read_pretty_hostname()

        if pretty and pretty.strip():
            return pretty.strip()
        return self.host_name()

    def _read_pretty_hostname(self) -> Optional[str]:
        try:
            content = MACHINE_INFO_PATH.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CollectionError("deviceName", f"cannot read {MACHINE_INFO_PATH}: {e}") from e

        for line in content.splitlines():
            name, _, value = line.partition("=")
            if name.strip() == "PRETTY_HOSTNAME":
                return value.strip().strip('"').strip("'")
        return None

    def platform_name(self) -> str:
        name = _PLATFORM_NAMES.get(self._system)
        if name:
            return name
        return require_value("platform", platform.system())

    def os_distro(self) -> str:
        if self._system == "linux":
            try:
                release = platform.freedesktop_os_release()
            except OSError as e:
                raise CollectionError("osDistro", f"os-release unavailable: {e}") from e
            return require_value(
                "osDistro", release.get("PRETTY_NAME") or release.get("NAME")
            )
        if self._system == "darwin":
            version = platform.mac_ver()[0]
            return f"macOS {version}" if version else "macOS"
        if self._system == "windows":
            return require_value("osDistro", f"Windows {platform.release()}")
        return require_value("osDistro", f"{platform.system()} {platform.release()}")

    def cpu_arch(self) -> str:
        return require_value("cpuArch", normalize_arch(platform.machine()))

    def desktop_env(self) -> str:
        if self._system == "darwin":
            return "Aqua"
        if self._system == "windows":
            return "Windows"
        for variable in ("XDG_CURRENT_DESKTOP", "XDG_SESSION_DESKTOP", "DESKTOP_SESSION"):
            value = self._environ.get(variable)
            if value and value.strip():
                return value.strip()
        return "Unknown"
