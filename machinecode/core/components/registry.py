"""
Component Registry
==================

Generic mapping from component key to collected string value.

Invariants:
- Keys are unique. A second insert of the same key raises DuplicateKeyError,
  whatever the value.
- Equality ignores insertion order: two registries are equal when they hold
  the same (key, value) pairs.
- No implicit defaults. Every present key was explicitly collected.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import ClassVar, Generic, Iterator, Mapping, Optional, TypeVar

from machinecode.core.components.keys import (
    ComponentKey,
    CoreKey,
    NamespacedKey,
    key_order,
    key_to_str,
)
from machinecode.core.exceptions import DuplicateKeyError

K = TypeVar("K")
R = TypeVar("R", bound="ComponentRegistry")


class ComponentRegistry(Generic[K]):
    """
    Ordered-on-demand key/value store with a uniqueness invariant.

    Subclasses declare the key types they accept in ``key_types``.

    Usage:
        registry = DeviceComponents()
        registry.insert(CoreKey.USER_NAME, "alice").insert(CoreKey.CPU_ARCH, "x86_64")

        registry.insert(CoreKey.USER_NAME, "bob")  # DuplicateKeyError
    """

    __slots__ = ("_components",)

    key_types: ClassVar[tuple[type, ...]] = ()

    def __init__(self, components: Optional[Mapping[K, str]] = None) -> None:
        self._components: dict[K, str] = {}
        if components:
            for key in sorted(components, key=key_order):
                self.insert(key, components[key])

    def insert(self: R, key: K, value: str) -> R:
        """
        Store a component.

        Args:
            key: Component key accepted by this registry
            value: Finalized string value

        Returns:
            The registry itself, for chained calls

        Raises:
            DuplicateKeyError: If the key is already present
            TypeError: If key or value has the wrong type
        """
        if self.key_types and not isinstance(key, self.key_types):
            raise TypeError(
                f"{type(self).__name__} does not accept key {key!r}"
            )
        if not isinstance(value, str):
            raise TypeError(f"Component value for {key} must be a string")
        if key in self._components:
            raise DuplicateKeyError(key_to_str(key))
        self._components[key] = value
        return self

    def merge(self: R, other: "ComponentRegistry[K]") -> R:
        """
        Insert every pair of another registry, in key order.

        Aborts on the first duplicate; pairs inserted before it stay.
        """
        for key, value in other.items_sorted():
            self.insert(key, value)
        return self

    def get_all(self) -> Mapping[K, str]:
        """Read-only view of all components (iteration order unspecified)."""
        return MappingProxyType(self._components)

    def get(self, key: K) -> Optional[str]:
        return self._components.get(key)

    def items_sorted(self) -> list[tuple[K, str]]:
        return sorted(self._components.items(), key=lambda item: key_order(item[0]))

    def __contains__(self, key: object) -> bool:
        return key in self._components

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[K]:
        return iter(sorted(self._components, key=key_order))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComponentRegistry):
            return NotImplemented
        return self._components == other._components

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return "\n".join(
            f"{key_to_str(key)}: {value}" for key, value in self.items_sorted()
        )

    def __repr__(self) -> str:
        """Representation listing key names only (values may identify the host)."""
        names = ", ".join(key_to_str(key) for key in self)
        return f"{type(self).__name__}([{names}])"


class DeviceComponents(ComponentRegistry[ComponentKey]):
    """Main registry: core keys plus namespaced platform keys."""

    __slots__ = ()

    key_types: ClassVar[tuple[type, ...]] = (CoreKey, NamespacedKey)
