"""
Rollup fingerprinting for error records.

The fingerprint is compared across log submissions that may come from
different processes, so it cannot use the built-in ``hash()`` (which is
salted per process). Strings are hashed with SHA-256 and folded to a signed
32-bit integer instead.
"""

import hashlib
from typing import Optional

# Mixing constant applied to the content hash before folding in the machine hash
ROLLUP_HASH_MULTIPLIER = 397


def _to_int32(value: int) -> int:
    """Wrap an arbitrary integer to the signed 32-bit range."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def stable_string_hash(value: str) -> int:
    """
    Hash a string to a signed 32-bit integer, identically in every process.

    Args:
        value: String to hash

    Returns:
        Signed 32-bit hash
    """
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], byteorder="little", signed=True)


def compute_error_hash(
    detail: Optional[str],
    rollup_per_server: bool = False,
    machine_name: Optional[str] = None
) -> Optional[int]:
    """
    Compute the rollup fingerprint of an error.

    Args:
        detail: Full rendered detail (stack trace) of the error
        rollup_per_server: Whether identical errors on different machines
            should be kept apart
        machine_name: Machine the error was captured on

    Returns:
        Fingerprint, or None when there is no detail to hash
    """
    if not detail:
        return None

    result = stable_string_hash(detail)
    if rollup_per_server and machine_name:
        result = _to_int32((result * ROLLUP_HASH_MULTIPLIER) ^ stable_string_hash(machine_name))

    return result
