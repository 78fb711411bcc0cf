"""
Collection collaborators.

Concrete probes behind the component registries: host identity for the
core keys, plus one extension registry per platform family.
"""

from machinecode.plugins.command import CommandRunner
from machinecode.plugins.host import HostProbe

__all__ = ["CommandRunner", "HostProbe"]
