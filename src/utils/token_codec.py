"""Invite bearer tokens.

The raw token is handed to the issuer once and never stored; only its
SHA-256 digest is persisted and used for redemption lookups.
"""

import hashlib
import secrets
from typing import Tuple

# 32 random bytes = 256 bits of entropy
TOKEN_BYTES = 32


def verify(candidate_token: str) -> str:
    """Return the digest used to look up ``candidate_token``.

    Args:
        candidate_token: URL-safe token presented by a caller.

    Returns:
        Hex-encoded SHA-256 digest of the token.
    """
    return hashlib.sha256(candidate_token.encode("utf-8")).hexdigest()


def issue() -> Tuple[str, str]:
    """Mint a new bearer token.

    Returns:
        Tuple of (token, digest). Persist only the digest.
    """
    token = secrets.token_urlsafe(TOKEN_BYTES)
    return token, verify(token)
