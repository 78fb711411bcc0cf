"""
Scoped WMI Session
==================

Explicit management-interface connection for one collection pass.

Queries are WQL statements executed through PowerShell ``Get-CimInstance``.
A session is acquired with ``with WmiSession(...)`` and released when the
pass ends; results are cached for the lifetime of the session only.
"""

from __future__ import annotations

import logging
from typing import Final, Optional

from machinecode.plugins.command import CommandRunner

POWERSHELL: Final[str] = "powershell"


def quote_powershell(text: str) -> str:
    """Single-quote a string for PowerShell (embedded quotes are doubled)."""
    return "'" + text.replace("'", "''") + "'"


def quote_wql(text: str) -> str:
    """Single-quote a WQL string literal."""
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


class WmiSession:
    """
    WMI query session.

    Usage:
        with WmiSession(CommandRunner()) as wmi:
            serials = wmi.query("SELECT SerialNumber FROM Win32_BIOS",
                                "SerialNumber", component="biosSerialNumber")
    """

    __slots__ = ("_runner", "_cache", "_open", "_log")

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner
        self._cache: dict[tuple[str, str], list[str]] = {}
        self._open = True
        self._log = logging.getLogger("machinecode.probe")

    def __enter__(self) -> WmiSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        self._cache.clear()
        self._open = False

    def query(self, wql: str, property_name: str, component: str) -> list[str]:
        """
        Run a WQL query and return one property of every result row.

        Args:
            wql: WQL SELECT statement
            property_name: Property to extract from each row
            component: Component name, used in error messages

        Returns:
            Non-empty trimmed property values, in result order

        Raises:
            RuntimeError: If the session was already closed
            CollectionError: If PowerShell fails
        """
        if not self._open:
            raise RuntimeError("WMI session is closed")
        if not property_name.isidentifier():
            raise ValueError(f"Invalid WMI property name: {property_name!r}")

        cache_key = (wql, property_name)
        cached: Optional[list[str]] = self._cache.get(cache_key)
        if cached is not None:
            return list(cached)

        script = (
            f"Get-CimInstance -Query {quote_powershell(wql)} | "
            f"ForEach-Object {{ $_.{property_name} }}"
        )
        self._log.debug("WMI query for %s: %s", component, wql)
        output = self._runner.run(
            [POWERSHELL, "-NoProfile", "-NonInteractive", "-Command", script],
            component,
        )
        values = [line.strip() for line in output.splitlines() if line.strip()]
        self._cache[cache_key] = values
        return list(values)
