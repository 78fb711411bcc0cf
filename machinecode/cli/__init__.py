"""MachineCode command-line interface."""

from machinecode.cli.main import cli

__all__ = ["cli"]
