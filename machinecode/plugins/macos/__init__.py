"""macOS platform extension."""

from machinecode.plugins.macos.plugin import MacOSComponents

__all__ = ["MacOSComponents"]
