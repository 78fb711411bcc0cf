"""
Windows Components
==================

Extension registry populated through a scoped WMI session.

Sources:
- systemDriveSerialNumber: Win32_LogicalDisk.VolumeSerialNumber of %SystemDrive%
- biosSerialNumber: Win32_BIOS.SerialNumber
- baseboardSerialNumber: Win32_BaseBoard.SerialNumber
- systemUuid: Win32_ComputerSystemProduct.UUID

OEM placeholder values are rejected rather than collected, since they are
shared by many machines.
"""

from __future__ import annotations

import os
from typing import ClassVar, Final, Mapping, Optional

from machinecode.core.components.keys import WindowsKey
from machinecode.core.components.registry import ComponentRegistry
from machinecode.core.exceptions import CollectionError
from machinecode.plugins.windows.wmi import WmiSession, quote_wql

DEFAULT_SYSTEM_DRIVE: Final[str] = "C:"

_PLACEHOLDER_VALUES: Final[frozenset[str]] = frozenset({
    "to be filled by o.e.m.",
    "default string",
    "system serial number",
    "not applicable",
    "none",
    "0",
    "00000000-0000-0000-0000-000000000000",
    "ffffffff-ffff-ffff-ffff-ffffffffffff",
})


def is_placeholder(value: str) -> bool:
    """True for OEM filler strings that do not identify a machine."""
    return value.strip().lower() in _PLACEHOLDER_VALUES


class WindowsComponents(ComponentRegistry[WindowsKey]):
    """
    Windows component registry with fluent collectors.

    Usage:
        with WmiSession(CommandRunner()) as wmi:
            components = WindowsComponents(wmi)
            components.add_system_drive_serial_number().add_bios_serial_number()
    """

    __slots__ = ("_session", "_environ")

    key_types: ClassVar[tuple[type, ...]] = (WindowsKey,)

    def __init__(
        self,
        session: WmiSession,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__()
        self._session = session
        self._environ = os.environ if environ is None else environ

    def _first_value(self, key: WindowsKey, wql: str, property_name: str) -> str:
        values = self._session.query(wql, property_name, component=key.value)
        if not values:
            raise CollectionError(key.value, f"{property_name} not reported by WMI")
        value = values[0]
        if is_placeholder(value):
            raise CollectionError(key.value, f"placeholder value {value!r}")
        return value

    def add_system_drive_serial_number(self) -> WindowsComponents:
        key = WindowsKey.SYSTEM_DRIVE_SERIAL_NUMBER
        drive = self._environ.get("SystemDrive") or DEFAULT_SYSTEM_DRIVE
        wql = (
            "SELECT VolumeSerialNumber FROM Win32_LogicalDisk "
            f"WHERE DeviceID = {quote_wql(drive)}"
        )
        return self.insert(key, self._first_value(key, wql, "VolumeSerialNumber"))

    def add_bios_serial_number(self) -> WindowsComponents:
        key = WindowsKey.BIOS_SERIAL_NUMBER
        wql = "SELECT SerialNumber FROM Win32_BIOS"
        return self.insert(key, self._first_value(key, wql, "SerialNumber"))

    def add_baseboard_serial_number(self) -> WindowsComponents:
        key = WindowsKey.BASEBOARD_SERIAL_NUMBER
        wql = "SELECT SerialNumber FROM Win32_BaseBoard"
        return self.insert(key, self._first_value(key, wql, "SerialNumber"))

    def add_system_uuid(self) -> WindowsComponents:
        key = WindowsKey.SYSTEM_UUID
        wql = "SELECT UUID FROM Win32_ComputerSystemProduct"
        return self.insert(key, self._first_value(key, wql, "UUID"))
