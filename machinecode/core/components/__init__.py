"""
Component key space, registries and their serialization.
"""

from machinecode.core.components.keys import (
    ComponentKey,
    CoreKey,
    MacOSKey,
    NamespacedKey,
    PlatformFamily,
    WindowsKey,
    all_keys,
    key_from_str,
    key_order,
    key_to_str,
    namespaced,
)
from machinecode.core.components.registry import ComponentRegistry, DeviceComponents
from machinecode.core.components.serialization import (
    dumps,
    from_document,
    from_text,
    loads,
    to_document,
    to_text,
)

__all__ = [
    "ComponentKey",
    "CoreKey",
    "MacOSKey",
    "NamespacedKey",
    "PlatformFamily",
    "WindowsKey",
    "all_keys",
    "key_from_str",
    "key_order",
    "key_to_str",
    "namespaced",
    "ComponentRegistry",
    "DeviceComponents",
    "dumps",
    "from_document",
    "from_text",
    "loads",
    "to_document",
    "to_text",
]
