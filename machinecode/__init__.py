"""
MachineCode - Device-Bound Machine Codes
========================================

This package collects a typed snapshot of identifying host attributes and
binds it to an encrypted machine code that can later be checked against
the machine it runs on.

Security Notice:
- Machine codes are sealed with AES-GCM under a caller-supplied key
- No keys or machine codes are logged
- Fail-closed verification: any missing or differing attribute fails
"""

from machinecode.core.config import MachineCodeConfig
from machinecode.core.logging import get_secure_logger

__version__ = "0.1.0"
__author__ = "MachineCode Team"

__all__ = ["MachineCodeConfig", "get_secure_logger", "__version__"]
