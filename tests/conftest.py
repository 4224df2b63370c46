"""
Shared fixtures for the Nostore test suite.

Events are built and signed here independently of the code under test so
that verification is checked against a second implementation of NIP-01.
"""

import base64
import hashlib
import json

import pytest
from coincurve.keys import PrivateKey, PublicKeyXOnly
from fastapi.testclient import TestClient

from nostore.api_server import ServerConfig, create_app
from nostore.backends.local import LocalBackend


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O beyond tmp dirs")
    config.addinivalue_line("markers", "integration: tests that drive the HTTP app")


# ===== SIGNING HELPERS =====

def pubkey_of(private_key: PrivateKey) -> str:
    """Hex x-only public key for a private key."""
    return PublicKeyXOnly.from_secret(private_key.secret).format().hex()


def sign_event(private_key: PrivateKey, **fields) -> dict:
    """Build and sign a NIP-98 style HTTP auth event."""
    event = {
        "pubkey": pubkey_of(private_key),
        "created_at": 1700000000,
        "kind": 27235,
        "tags": [["method", "PUT"]],
        "content": "",
    }
    event.update(fields)

    serialized = json.dumps(
        [0, event["pubkey"], event["created_at"], event["kind"], event["tags"], event["content"]],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    event["id"] = hashlib.sha256(serialized.encode("utf-8")).hexdigest()
    event["sig"] = private_key.sign_schnorr(bytes.fromhex(event["id"])).hex()
    return event


def encode_header(event: dict) -> str:
    """Encode an event as an Authorization header value."""
    payload = base64.b64encode(json.dumps(event).encode("utf-8")).decode("ascii")
    return f"Nostr {payload}"


# ===== FIXTURES =====

@pytest.fixture
def alice_key():
    return PrivateKey(bytes.fromhex("11" * 32))


@pytest.fixture
def bob_key():
    return PrivateKey(bytes.fromhex("22" * 32))


@pytest.fixture
def alice(alice_key):
    """Alice's public key."""
    return pubkey_of(alice_key)


@pytest.fixture
def bob(bob_key):
    """Bob's public key."""
    return pubkey_of(bob_key)


@pytest.fixture
def alice_auth(alice_key):
    """Valid Authorization header for Alice."""
    return encode_header(sign_event(alice_key))


@pytest.fixture
def storage_dir(tmp_path):
    """Temporary storage root."""
    return tmp_path / "data"


@pytest.fixture
def backend(storage_dir):
    return LocalBackend(storage_dir)


@pytest.fixture
def client(storage_dir):
    """HTTP client bound to an app serving ``storage_dir``."""
    app = create_app(ServerConfig(storage_dir=storage_dir))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_event():
    """Factory: sign an event dict for a private key."""
    return sign_event


@pytest.fixture
def make_header():
    """Factory: Authorization header for a private key."""
    def _make_header(private_key: PrivateKey, **fields) -> str:
        return encode_header(sign_event(private_key, **fields))
    return _make_header


@pytest.fixture
def encode():
    """Encode an already-built event dict as an Authorization header."""
    return encode_header
