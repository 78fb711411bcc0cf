"""
Component Key Space
===================

Closed enumeration of every attribute MachineCode can collect.

A component key is either a core key or a namespaced key wrapping the
sub-key of one platform family. Every key has exactly one canonical string:

    userName                       core key
    MacOS::platformSerialNumber    namespaced key

Adding a platform means one PlatformFamily member and one sub-key enum
registered in _SUB_KEYS.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Union

from machinecode.core.exceptions import UnknownKeyError

NAMESPACE_SEPARATOR: Final[str] = "::"


class PlatformFamily(Enum):
    """Platform families that contribute namespaced components."""
    WINDOWS = "Windows"
    MACOS = "MacOS"


class CoreKey(Enum):
    """Platform independent machine identifiers."""
    USER_NAME = "userName"
    DEVICE_NAME = "deviceName"
    HOST_NAME = "hostName"
    PLATFORM = "platform"
    OS_DISTRO = "osDistro"
    CPU_ARCH = "cpuArch"
    DESKTOP_ENV = "desktopEnv"


class WindowsKey(Enum):
    """Attributes collected through the Windows management interface."""
    SYSTEM_DRIVE_SERIAL_NUMBER = "systemDriveSerialNumber"
    BIOS_SERIAL_NUMBER = "biosSerialNumber"
    BASEBOARD_SERIAL_NUMBER = "baseboardSerialNumber"
    SYSTEM_UUID = "systemUuid"


class MacOSKey(Enum):
    """Attributes collected from the macOS I/O registry and system profiler."""
    PLATFORM_SERIAL_NUMBER = "platformSerialNumber"
    SYSTEM_DRIVE_SERIAL_NUMBER = "systemDriveSerialNumber"
    PLATFORM_UUID = "platformUuid"


SubKey = Union[WindowsKey, MacOSKey]

_SUB_KEYS: Final[dict[PlatformFamily, type[Enum]]] = {
    PlatformFamily.WINDOWS: WindowsKey,
    PlatformFamily.MACOS: MacOSKey,
}

_FAMILY_BY_SUB_KEY: Final[dict[type[Enum], PlatformFamily]] = {
    enum_type: family for family, enum_type in _SUB_KEYS.items()
}


@dataclass(frozen=True, slots=True)
class NamespacedKey:
    """
    A platform sub-key tagged with its owning family.

    Attributes:
        family: Platform family owning the sub-key
        sub_key: Member of that family's sub-key enum
    """
    family: PlatformFamily
    sub_key: SubKey

    def __post_init__(self) -> None:
        expected = _SUB_KEYS[self.family]
        if not isinstance(self.sub_key, expected):
            raise TypeError(
                f"{self.sub_key!r} is not a {self.family.value} component"
            )

    def __str__(self) -> str:
        return f"{self.family.value}{NAMESPACE_SEPARATOR}{self.sub_key.value}"


ComponentKey = Union[CoreKey, NamespacedKey]


def namespaced(sub_key: SubKey) -> NamespacedKey:
    """Wrap a platform sub-key with the family that owns it."""
    try:
        family = _FAMILY_BY_SUB_KEY[type(sub_key)]
    except KeyError:
        raise TypeError(f"{sub_key!r} is not a platform component") from None
    return NamespacedKey(family, sub_key)


def key_to_str(key: ComponentKey | SubKey) -> str:
    """Return the canonical string of a key."""
    if isinstance(key, NamespacedKey):
        return str(key)
    if isinstance(key, (CoreKey, WindowsKey, MacOSKey)):
        return key.value
    raise TypeError(f"Not a component key: {key!r}")


def key_from_str(text: str) -> ComponentKey:
    """
    Parse a canonical key string.

    Raises:
        UnknownKeyError: If the string names no key in the closed key space
    """
    key = _KEYS_BY_STRING.get(text)
    if key is None:
        raise UnknownKeyError(text)
    return key


def all_keys() -> list[ComponentKey]:
    """Every key of the main registry key space, in key order."""
    keys: list[ComponentKey] = list(CoreKey)
    for family, enum_type in _SUB_KEYS.items():
        keys.extend(NamespacedKey(family, sub_key) for sub_key in enum_type)
    return keys


def _position(member: Enum) -> int:
    return _POSITIONS[member]


def key_order(key: ComponentKey | SubKey) -> tuple[int, int, int]:
    """
    Total order over keys.

    Core keys sort first in declaration order, then namespaced keys by
    family and sub-key declaration order. Bare sub-keys order by declaration.
    """
    if isinstance(key, CoreKey):
        return (0, 0, _position(key))
    if isinstance(key, NamespacedKey):
        return (1, _position(key.family), _position(key.sub_key))
    if isinstance(key, (WindowsKey, MacOSKey)):
        return (2, _position(_FAMILY_BY_SUB_KEY[type(key)]), _position(key))
    raise TypeError(f"Not a component key: {key!r}")


_POSITIONS: Final[dict[Enum, int]] = {
    member: index
    for enum_type in (PlatformFamily, CoreKey, *_SUB_KEYS.values())
    for index, member in enumerate(enum_type)
}

_KEYS_BY_STRING: Final[dict[str, ComponentKey]] = {
    key_to_str(key): key for key in all_keys()
}
