"""Configuration helpers for the sandbox admin-ajax server."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class SandboxSettings:
    secret: str
    host: str
    port: int
    session_ttl: float


def load_settings() -> SandboxSettings:
    port_raw = os.getenv("WCEFP_SANDBOX_PORT", "8000")
    return SandboxSettings(
        secret=os.getenv("WCEFP_SANDBOX_SECRET", "dev-secret"),
        host=os.getenv("WCEFP_SANDBOX_HOST", "127.0.0.1"),
        port=int(port_raw),
        session_ttl=float(os.getenv("WCEFP_SANDBOX_SESSION_TTL", "300")),
    )
