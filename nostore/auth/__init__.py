"""
Nostore Authentication Module

Provides signed-event authentication and namespace authorization:
- Reads are public
- Writes require a signed Nostr event whose pubkey owns the target path
"""

from .access_control import (
    INVALID_STRUCTURE,
    WRONG_PUBKEY,
    authorize,
    denial_reason,
    split_segments,
)
from .nostr_event import (
    AUTH_SCHEME,
    InvalidAuthorization,
    NostrEvent,
    compute_event_id,
    decode_authorization_header,
    is_valid_pubkey,
    verify_authorization_header,
    verify_event,
)

__all__ = [
    "AUTH_SCHEME",
    "INVALID_STRUCTURE",
    "WRONG_PUBKEY",
    "InvalidAuthorization",
    "NostrEvent",
    "authorize",
    "compute_event_id",
    "decode_authorization_header",
    "denial_reason",
    "is_valid_pubkey",
    "split_segments",
    "verify_authorization_header",
    "verify_event",
]
