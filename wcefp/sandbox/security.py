"""Nonce and session id helpers for the sandbox."""

from __future__ import annotations

import hashlib
import hmac
import secrets


SESSION_BYTES = 16
NONCE_SCOPE = "wcefp_nonce"


def generate_session_id() -> str:
    """Generate an opaque realtime session id."""
    return secrets.token_urlsafe(SESSION_BYTES)


def create_nonce(secret: str, scope: str = NONCE_SCOPE) -> str:
    """Derive a WordPress-style 10 character nonce for ``scope``."""
    digest = hmac.new(secret.encode("utf-8"), scope.encode("utf-8"), hashlib.sha256).hexdigest()
    return digest[:10]


def verify_nonce(nonce: str, secret: str, scope: str = NONCE_SCOPE) -> bool:
    """Constant-time comparison against the expected nonce."""
    return hmac.compare_digest(nonce, create_nonce(secret, scope))
