"""
Nostore - per-identity file storage over HTTP

Every Nostr public key owns one writable path, ``/<pubkey>``. Uploads must
carry an Authorization header holding a signed Nostr event for that key;
downloads are open to everyone.

Quick Start:
    $ STORAGE_DIR=./data nostore-server

    $ curl -X PUT http://127.0.0.1:8080/<pubkey> \\
        -H "Authorization: Nostr <base64 signed event>" \\
        --data-binary @profile.json

    $ curl http://127.0.0.1:8080/<pubkey>

Features:
    - BIP-340 Schnorr verification of NIP-01 events
    - Flat one-path-per-identity namespace
    - Streamed uploads with atomic replacement
    - Public reads with extension-based content types
"""

__version__ = "1.0.0"
__author__ = "Nostore Team"
