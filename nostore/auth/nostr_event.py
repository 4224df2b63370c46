"""
Nostore Signed-Event Verification

Write requests carry a signed Nostr event in the Authorization header:

    Authorization: Nostr <base64(JSON event)>

The event is a NIP-01 object. Its ``id`` is the sha256 of the canonical
serialization ``[0, pubkey, created_at, kind, tags, content]`` and ``sig`` is
a BIP-340 Schnorr signature of that id by ``pubkey``. A header whose event
passes both checks yields the event's public key; anything else yields no
identity.

Author: Nostore Team
License: MIT
"""

import base64
import hashlib
import json
import logging
import re
from typing import List, Optional

from coincurve.keys import PublicKeyXOnly
from pydantic import BaseModel, Field, StrictInt, ValidationError, field_validator

logger = logging.getLogger(__name__)

AUTH_SCHEME = "Nostr"

# 32-byte x-only secp256k1 key, lowercase hex
PUBKEY_PATTERN = re.compile(r"^[0-9a-f]{64}$")
SIGNATURE_PATTERN = re.compile(r"^[0-9a-f]{128}$")


class InvalidAuthorization(ValueError):
    """Raised when an Authorization header cannot be turned into an event."""


class NostrEvent(BaseModel):
    """Signed Nostr event presented as a proof of identity."""

    id: str = Field(..., description="sha256 of the canonical event serialization")
    pubkey: str = Field(..., description="x-only public key of the signer (64 hex)")
    created_at: StrictInt = Field(..., description="Unix timestamp in seconds")
    kind: StrictInt = Field(..., description="Event kind")
    tags: List[List[str]] = Field(default_factory=list, description="Event tags")
    content: str = Field(default="", description="Event content")
    sig: str = Field(..., description="BIP-340 Schnorr signature of the id (128 hex)")

    @field_validator("id", "pubkey")
    @classmethod
    def _check_hex32(cls, value: str) -> str:
        if not is_valid_pubkey(value):
            raise ValueError("must be 64 lowercase hex characters")
        return value

    @field_validator("sig")
    @classmethod
    def _check_signature(cls, value: str) -> str:
        if not SIGNATURE_PATTERN.match(value):
            raise ValueError("must be 128 lowercase hex characters")
        return value

    def serialize(self) -> bytes:
        """Canonical NIP-01 serialization used to derive the event id."""
        payload = [0, self.pubkey, self.created_at, self.kind, self.tags, self.content]
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def is_valid_pubkey(value: Optional[str]) -> bool:
    """Check that a value has the identity format (64 lowercase hex chars)."""
    return bool(value) and PUBKEY_PATTERN.match(value) is not None


def compute_event_id(event: NostrEvent) -> str:
    """Compute the hex event id from the event's canonical fields."""
    return hashlib.sha256(event.serialize()).hexdigest()


def decode_authorization_header(authorization: str) -> NostrEvent:
    """
    Decode an Authorization header into a Nostr event.

    Args:
        authorization: Raw header value, ``Nostr <base64 JSON>``

    Returns:
        Parsed event (signature not yet checked)

    Raises:
        InvalidAuthorization: If the scheme, encoding or event shape is wrong
    """
    scheme, _, credential = authorization.strip().partition(" ")
    if scheme.lower() != AUTH_SCHEME.lower() or not credential.strip():
        raise InvalidAuthorization("unsupported authorization scheme")

    try:
        decoded = base64.b64decode(credential.strip(), validate=True)
        data = json.loads(decoded.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        # ValueError covers bad base64, bad UTF-8, bad JSON and oversized integers
        raise InvalidAuthorization(f"credential is not base64 JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidAuthorization("credential is not a JSON object")

    try:
        return NostrEvent.model_validate(data)
    except ValidationError as e:
        raise InvalidAuthorization(f"malformed event: {e.error_count()} invalid field(s)") from e


def verify_event(event: NostrEvent) -> bool:
    """
    Verify an event's id and Schnorr signature.

    Returns:
        True if the id matches the event contents and ``sig`` is a valid
        signature of the id by ``pubkey``
    """
    event_id = compute_event_id(event)
    if event_id != event.id:
        logger.debug(f"Event id mismatch for pubkey {event.pubkey[:16]}...")
        return False

    try:
        public_key = PublicKeyXOnly(bytes.fromhex(event.pubkey))
        return public_key.verify(bytes.fromhex(event.sig), bytes.fromhex(event_id))
    except (ValueError, TypeError) as e:
        # coincurve rejects keys that are not on the curve
        logger.debug(f"Signature check failed for pubkey {event.pubkey[:16]}...: {e}")
        return False


def verify_authorization_header(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the authenticated public key from an Authorization header.

    Args:
        authorization: Header value, or None when the header is absent

    Returns:
        The signer's public key if the header carries a validly signed
        event, None otherwise. Never raises for bad input.
    """
    if not authorization:
        return None

    try:
        event = decode_authorization_header(authorization)
    except InvalidAuthorization as e:
        logger.debug(f"Rejected authorization header: {e}")
        return None

    if not verify_event(event):
        return None

    return event.pubkey
