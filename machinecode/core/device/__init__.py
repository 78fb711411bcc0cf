"""
MachineCode Device Binding Module
=================================

Issues machine codes and checks them against the current machine.

Security Features:
- Components sealed with authenticated encryption
- Exact per-attribute comparison
- Hard failure on device mismatch
- No bypass mechanisms

Components:
- device_lock.py: Issue/check protocol
"""

from machinecode.core.device.device_lock import (
    ComponentMismatch,
    DeviceLock,
    MismatchReason,
    VerificationMismatch,
    VerifiedDevice,
    compare_components,
)

__all__ = [
    "ComponentMismatch",
    "DeviceLock",
    "MismatchReason",
    "VerificationMismatch",
    "VerifiedDevice",
    "compare_components",
]
