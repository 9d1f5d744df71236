"""Sandbox admin-ajax server for exercising the client toolkit."""

from .config import SandboxSettings, load_settings
from .security import create_nonce, generate_session_id, verify_nonce
from .store import ActionRejected, InMemorySandboxStore, SandboxStore, create_store

__all__ = [
    "ActionRejected",
    "create_nonce",
    "create_store",
    "generate_session_id",
    "InMemorySandboxStore",
    "load_settings",
    "SandboxSettings",
    "SandboxStore",
    "verify_nonce",
]
