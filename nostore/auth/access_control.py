"""
Nostore Access Control - per-identity namespace policy

PUBLIC (no authentication):
    - GET /{path}
    - OPTIONS /{path}
    - GET /health

AUTHENTICATED (signed Nostr event required):
    - PUT /{pubkey}

An identity owns exactly one namespace: the single top-level path segment
equal to its public key. Nested paths are never writable.

Author: Nostore Team
License: MIT
"""

from typing import List, Optional


WRONG_PUBKEY = "wrong pubkey"
INVALID_STRUCTURE = "target directory structure is invalid"


def split_segments(path: str) -> List[str]:
    """Split a request path into its non-empty ``/`` segments."""
    return [segment for segment in path.split("/") if segment != ""]


def authorize(target_dir: str, pubkey: str) -> bool:
    """
    Decide whether an identity may write to a namespace path.

    Args:
        target_dir: Request path being written
        pubkey: Authenticated public key

    Returns:
        True iff the path has exactly one segment and it equals ``pubkey``
    """
    segments = split_segments(target_dir)
    return len(segments) == 1 and segments[0] == pubkey


def denial_reason(target_dir: str, pubkey: str) -> Optional[str]:
    """
    Explain why ``authorize`` refuses a write.

    Returns:
        None when the write is allowed, ``WRONG_PUBKEY`` when the path is
        rooted in another namespace, ``INVALID_STRUCTURE`` when it is rooted
        in the caller's namespace but is empty or nested
    """
    if authorize(target_dir, pubkey):
        return None

    segments = split_segments(target_dir)
    if segments and segments[0] != pubkey:
        return WRONG_PUBKEY
    return INVALID_STRUCTURE
