"""
One-way component fingerprints.

Alternative to the reversible machine code: an HMAC over the canonical
JSON of a registry. Unlike the display text, the JSON form keeps values
with line breaks apart from extra components. The result identifies a machine but cannot be decoded back
into its components, so it cannot drive the per-attribute check.
"""

from __future__ import annotations

import hmac
import os
from enum import Enum
from typing import Final, Mapping, Optional

from machinecode.core.components.registry import ComponentRegistry
from machinecode.core.components.serialization import dumps

ENCRYPTION_KEY_PREFIX_ENV: Final[str] = "ENCRYPTION_KEY_PREFIX"
DEFAULT_ENCRYPTION_KEY_PREFIX: Final[str] = "key"


class DigestAlgorithm(Enum):
    """HMAC digest algorithms available for fingerprints."""
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"


def fingerprint(
    components: ComponentRegistry,
    algorithm: DigestAlgorithm = DigestAlgorithm.SHA256,
    key_prefix: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Compute a hex HMAC fingerprint of a registry.

    The HMAC key is ``key_prefix``, else ENCRYPTION_KEY_PREFIX from the
    environment, else "key".
    """
    if key_prefix is None:
        env = os.environ if environ is None else environ
        key_prefix = env.get(ENCRYPTION_KEY_PREFIX_ENV, DEFAULT_ENCRYPTION_KEY_PREFIX)

    mac = hmac.new(key_prefix.encode("utf-8"), digestmod=algorithm.value)
    mac.update(dumps(components).encode("utf-8"))
    return mac.hexdigest()
