"""
Registry Serialization
======================

Deterministic encodings of a DeviceComponents registry.

Two forms share one canonical ordering (key_order):
- Display text: one ``<key>: <value>`` line per component
- Document: a JSON object of canonical key strings to values. The compact
  JSON dump is the plaintext sealed inside a machine code.

Decoding never drops data: unknown key strings raise UnknownKeyError and
malformed input raises DecodeError.
"""

from __future__ import annotations

import json
from typing import Any, Final, Mapping

from machinecode.core.components.keys import key_from_str, key_to_str
from machinecode.core.components.registry import ComponentRegistry, DeviceComponents
from machinecode.core.exceptions import DecodeError

TEXT_SEPARATOR: Final[str] = ": "


def to_text(registry: ComponentRegistry) -> str:
    """Render a registry as sorted ``key: value`` lines."""
    return str(registry)


def from_text(text: str) -> DeviceComponents:
    """
    Parse the display text back into a registry.

    Values cannot contain line breaks in this form; use dumps/loads for
    exact round trips of arbitrary values.
    """
    registry = DeviceComponents()
    if not text:
        return registry
    for line_number, line in enumerate(text.split("\n"), start=1):
        name, separator, value = line.partition(TEXT_SEPARATOR)
        if not separator:
            raise DecodeError(f"Line {line_number} is not a 'key: value' pair")
        registry.insert(key_from_str(name), value)
    return registry


def to_document(registry: ComponentRegistry) -> dict[str, str]:
    """Structured form, inserted in key order."""
    return {key_to_str(key): value for key, value in registry.items_sorted()}


def from_document(document: Any) -> DeviceComponents:
    """
    Build a registry from a structured document.

    Raises:
        DecodeError: If the document is not a mapping of strings
        UnknownKeyError: If a key is outside the component key space
    """
    if not isinstance(document, Mapping):
        raise DecodeError("Component document must be an object")
    registry = DeviceComponents()
    for name, value in document.items():
        if not isinstance(name, str) or not isinstance(value, str):
            raise DecodeError("Component names and values must be strings")
        registry.insert(key_from_str(name), value)
    return registry


def dumps(registry: ComponentRegistry) -> str:
    """Canonical compact JSON for a registry."""
    return json.dumps(
        to_document(registry),
        ensure_ascii=False,
        separators=(",", ":"),
    )


def _reject_duplicates(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    document: dict[str, Any] = {}
    for name, value in pairs:
        if name in document:
            raise DecodeError(f"Duplicate member {name!r} in component document")
        document[name] = value
    return document


def loads(text: str) -> DeviceComponents:
    """Inverse of dumps."""
    try:
        document = json.loads(text, object_pairs_hook=_reject_duplicates)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid component document: {e.msg}") from e
    except RecursionError as e:
        raise DecodeError("Invalid component document: nested too deeply") from e
    return from_document(document)
