"""Windows platform extension."""

from machinecode.plugins.windows.plugin import WindowsComponents
from machinecode.plugins.windows.wmi import WmiSession

__all__ = ["WindowsComponents", "WmiSession"]
