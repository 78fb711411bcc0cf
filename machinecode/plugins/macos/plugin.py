"""
macOS Components
================

Extension registry populated from the I/O registry and system profiler.

Sources:
- platformSerialNumber, platformUuid: ``ioreg -rd1 -c IOPlatformExpertDevice``
- systemDriveSerialNumber: ``system_profiler SPNVMeDataType``
"""

from __future__ import annotations

import re
from typing import ClassVar, Final, Optional, Pattern

from machinecode.core.components.keys import MacOSKey
from machinecode.core.components.registry import ComponentRegistry
from machinecode.core.exceptions import CollectionError
from machinecode.plugins.command import CommandRunner

IOREG_COMMAND: Final[tuple[str, ...]] = ("ioreg", "-rd1", "-c", "IOPlatformExpertDevice")
NVME_COMMAND: Final[tuple[str, ...]] = ("system_profiler", "SPNVMeDataType")

_IOREG_PROPERTY: Final[str] = r'"{name}"\s*=\s*"([^"]+)"'
_NVME_SERIAL: Final[Pattern[str]] = re.compile(r"Serial Number:\s*(\S+)")


class MacOSComponents(ComponentRegistry[MacOSKey]):
    """
    macOS component registry with fluent collectors.

    The ioreg output is read once per registry, i.e. once per collection pass.

    Usage:
        components = MacOSComponents(CommandRunner())
        components.add_platform_serial_number().add_system_drive_serial_number()
    """

    __slots__ = ("_runner", "_ioreg_output")

    key_types: ClassVar[tuple[type, ...]] = (MacOSKey,)

    def __init__(self, runner: CommandRunner) -> None:
        super().__init__()
        self._runner = runner
        self._ioreg_output: Optional[str] = None

    def _ioreg_property(self, key: MacOSKey, name: str) -> str:
        if self._ioreg_output is None:
            self._ioreg_output = self._runner.run(IOREG_COMMAND, key.value)
        match = re.search(_IOREG_PROPERTY.format(name=name), self._ioreg_output)
        if not match or not match.group(1).strip():
            raise CollectionError(key.value, f"{name} not reported by ioreg")
        return match.group(1).strip()

    def add_platform_serial_number(self) -> MacOSComponents:
        key = MacOSKey.PLATFORM_SERIAL_NUMBER
        return self.insert(key, self._ioreg_property(key, "IOPlatformSerialNumber"))

    def add_platform_uuid(self) -> MacOSComponents:
        key = MacOSKey.PLATFORM_UUID
        return self.insert(key, self._ioreg_property(key, "IOPlatformUUID"))

    def add_system_drive_serial_number(self) -> MacOSComponents:
        key = MacOSKey.SYSTEM_DRIVE_SERIAL_NUMBER
        output = self._runner.run(NVME_COMMAND, key.value)
        match = _NVME_SERIAL.search(output)
        if not match:
            raise CollectionError(key.value, "no NVMe serial number reported")
        return self.insert(key, match.group(1))
