"""Opaque token generation and hashing for portal access links."""

import hashlib
import secrets

# 32 random bytes -> 256 bits of entropy, ~43 URL-safe characters
TOKEN_BYTES = 32


def generate_access_token() -> str:
    """Generate an unguessable, URL-safe opaque token.

    The token carries no data; it is only a lookup key.
    """
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store and look up tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()

