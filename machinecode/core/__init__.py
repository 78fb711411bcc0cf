"""
Core module - Configuration, logging, errors and the machine code protocol.
"""

from machinecode.core.config import MachineCodeConfig
from machinecode.core.logging import get_secure_logger, SecureLogFilter

__all__ = ["MachineCodeConfig", "get_secure_logger", "SecureLogFilter"]
