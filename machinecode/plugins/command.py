"""
External Command Probes
=======================

Runs OS introspection tools for the platform collaborators.

Every probe is a one-shot blocking read of machine state. Failures surface
as CollectionError and are never retried here.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Final, Sequence

from machinecode.core.exceptions import CollectionError

DEFAULT_COMMAND_TIMEOUT: Final[float] = 10.0


class CommandRunner:
    """
    Executes introspection commands without a shell.

    Usage:
        runner = CommandRunner(timeout=5)
        output = runner.run(["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
                            component="platformSerialNumber")
    """

    __slots__ = ("_timeout", "_log")

    def __init__(self, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> None:
        if timeout <= 0:
            raise ValueError("Command timeout must be positive")
        self._timeout = timeout
        self._log = logging.getLogger("machinecode.probe")

    @property
    def timeout(self) -> float:
        return self._timeout

    def run(self, args: Sequence[str], component: str) -> str:
        """
        Run a command and return its trimmed standard output.

        Args:
            args: Program and arguments
            component: Component name, used in error messages

        Raises:
            CollectionError: If the tool is missing, times out or fails
        """
        self._log.debug("Probing %s with %s", component, args[0])
        try:
            result = subprocess.run(
                list(args),
                capture_output=True,
                text=True,
                timeout=self._timeout,
                creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
            )
        except FileNotFoundError:
            raise CollectionError(component, f"{args[0]} is not available") from None
        except subprocess.TimeoutExpired:
            raise CollectionError(
                component, f"{args[0]} timed out after {self._timeout}s"
            ) from None
        except OSError as e:
            raise CollectionError(component, f"{args[0]} could not run: {e}") from e

        if result.returncode != 0:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise CollectionError(component, f"{args[0]} failed: {detail}")

        return result.stdout.strip()


def require_value(component: str, value: str | None) -> str:
    """Trim a collected value, failing when nothing is left."""
    trimmed = (value or "").strip()
    if not trimmed:
        raise CollectionError(component, "no value reported")
    return trimmed
