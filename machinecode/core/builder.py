"""
Device Info Builder
===================

Composition layer: runs one collection pass and assembles the main registry.

Core components come from the injected host collaborator. Platform
components are collected only when the injected PlatformDescriptor matches
their family; the extension registry is then namespaced and merged in.
When the platform does not match, the configuration callback never runs
and nothing is probed.

Usage:
    builder = DeviceInfoBuilder()
    (builder
        .add_user_name()
        .add_platform_name()
        .on_macos(lambda macos: macos.add_platform_serial_number()))
    print(builder)
"""

from __future__ import annotations

import platform as _platform
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, Optional

from machinecode.core.components.keys import CoreKey, PlatformFamily, namespaced
from machinecode.core.components.registry import ComponentRegistry, DeviceComponents
from machinecode.core.components.serialization import dumps
from machinecode.plugins.command import CommandRunner
from machinecode.plugins.host import HostProbe
from machinecode.plugins.macos.plugin import MacOSComponents
from machinecode.plugins.windows.plugin import WindowsComponents
from machinecode.plugins.windows.wmi import WmiSession

WindowsConfigure = Callable[[WindowsComponents], Any]
MacOSConfigure = Callable[[MacOSComponents], Any]
WmiSessionFactory = Callable[[], ContextManager[WmiSession]]
CommandRunnerFactory = Callable[[], CommandRunner]


@dataclass(frozen=True, slots=True)
class PlatformDescriptor:
    """
    Which platform family is active for a collection pass.

    A single optional family makes the platform predicates mutually
    exclusive. ``family=None`` means no platform extension applies.
    """
    family: Optional[PlatformFamily] = None

    def is_windows(self) -> bool:
        return self.family is PlatformFamily.WINDOWS

    def is_macos(self) -> bool:
        return self.family is PlatformFamily.MACOS

    @classmethod
    def detect(cls, system: Optional[str] = None) -> PlatformDescriptor:
        """Descriptor for the running OS (or the given platform.system() value)."""
        name = (system or _platform.system()).lower()
        if name == "windows":
            return cls(PlatformFamily.WINDOWS)
        if name == "darwin":
            return cls(PlatformFamily.MACOS)
        return cls(None)


class DeviceInfoBuilder:
    """
    Fluent builder for a DeviceComponents registry.

    Args:
        host: Core component collaborator
        platform: Active platform descriptor (detected by default)
        wmi_session: Factory opening a scoped WMI session (Windows only)
        command_runner: Factory for the macOS command runner
    """

    __slots__ = ("_components", "_host", "_platform", "_wmi_session", "_command_runner")

    def __init__(
        self,
        host: Optional[HostProbe] = None,
        platform: Optional[PlatformDescriptor] = None,
        wmi_session: Optional[WmiSessionFactory] = None,
        command_runner: Optional[CommandRunnerFactory] = None,
    ) -> None:
        self._components = DeviceComponents()
        self._host = host or HostProbe()
        self._platform = platform or PlatformDescriptor.detect()
        self._command_runner = command_runner or CommandRunner
        self._wmi_session = wmi_session or (lambda: WmiSession(self._command_runner()))

    @property
    def components(self) -> DeviceComponents:
        return self._components

    @property
    def platform(self) -> PlatformDescriptor:
        return self._platform

    def _add(self, key: CoreKey, collect: Callable[[], str]) -> DeviceInfoBuilder:
        self._components.insert(key, collect())
        return self

    def add_user_name(self) -> DeviceInfoBuilder:
        return self._add(CoreKey.USER_NAME, self._host.user_name)

    def add_device_name(self) -> DeviceInfoBuilder:
        return self._add(CoreKey.DEVICE_NAME, self._host.device_name)

    def add_host_name(self) -> DeviceInfoBuilder:
        return self._add(CoreKey.HOST_NAME, self._host.host_name)

    def add_platform_name(self) -> DeviceInfoBuilder:
        return self._add(CoreKey.PLATFORM, self._host.platform_name)

    def add_os_distro(self) -> DeviceInfoBuilder:
        return self._add(CoreKey.OS_DISTRO, self._host.os_distro)

    def add_cpu_arch(self) -> DeviceInfoBuilder:
        return self._add(CoreKey.CPU_ARCH, self._host.cpu_arch)

    def add_desktop_env(self) -> DeviceInfoBuilder:
        return self._add(CoreKey.DESKTOP_ENV, self._host.desktop_env)

    def on_windows(self, configure: WindowsConfigure) -> DeviceInfoBuilder:
        """Collect Windows components if the active platform is Windows."""
        if not self._platform.is_windows():
            return self
        with self._wmi_session() as session:
            extension = WindowsComponents(session)
            configure(extension)
        return self._merge_extension(extension)

    def on_macos(self, configure: MacOSConfigure) -> DeviceInfoBuilder:
        """Collect macOS components if the active platform is macOS."""
        if not self._platform.is_macos():
            return self
        extension = MacOSComponents(self._command_runner())
        configure(extension)
        return self._merge_extension(extension)

    def _merge_extension(self, extension: ComponentRegistry) -> DeviceInfoBuilder:
        wrapped = DeviceComponents()
        for sub_key, value in extension.items_sorted():
            wrapped.insert(namespaced(sub_key), value)
        self._components.merge(wrapped)
        return self

    def serialize(self) -> str:
        return dumps(self._components)

    def __str__(self) -> str:
        return str(self._components)


CollectionPolicy = Callable[[DeviceInfoBuilder], Any]


def default_policy(builder: DeviceInfoBuilder) -> None:
    """Machine identifiers plus one hardware serial per platform."""
    (builder
        .add_user_name()
        .add_device_name()
        .add_platform_name()
        .add_os_distro()
        .add_cpu_arch()
        .on_windows(lambda windows: windows.add_system_drive_serial_number())
        .on_macos(lambda macos: macos.add_platform_serial_number()))


def collect_components(
    policy: CollectionPolicy = default_policy,
    host: Optional[HostProbe] = None,
    platform: Optional[PlatformDescriptor] = None,
    wmi_session: Optional[WmiSessionFactory] = None,
    command_runner: Optional[CommandRunnerFactory] = None,
) -> DeviceComponents:
    """
    Run one complete collection pass.

    Raises:
        CollectionError: If any probe fails (the whole pass aborts)
    """
    builder = DeviceInfoBuilder(
        host=host,
        platform=platform,
        wmi_session=wmi_session,
        command_runner=command_runner,
    )
    policy(builder)
    return builder.components
