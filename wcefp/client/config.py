"""Configuration helpers for the client toolkit."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_AJAX_URL = "http://127.0.0.1:8000/wp-admin/admin-ajax.php"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ClientSettings:
    ajax_url: str
    nonce: str
    poll_interval_ms: int
    reconnect_delay_ms: int
    max_reconnect_attempts: int
    request_timeout: float
    per_page: int
    log_level: str
    disable_analytics: bool
    debug: bool
    preferences_path: str | None

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000

    @property
    def reconnect_delay(self) -> float:
        return self.reconnect_delay_ms / 1000


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


def load_settings() -> ClientSettings:
    return ClientSettings(
        ajax_url=os.getenv("WCEFP_AJAX_URL", DEFAULT_AJAX_URL),
        nonce=os.getenv("WCEFP_NONCE", ""),
        poll_interval_ms=int(os.getenv("WCEFP_POLL_INTERVAL_MS", "5000")),
        reconnect_delay_ms=int(os.getenv("WCEFP_RECONNECT_DELAY_MS", "1000")),
        max_reconnect_attempts=int(os.getenv("WCEFP_MAX_RECONNECT_ATTEMPTS", "5")),
        request_timeout=float(os.getenv("WCEFP_REQUEST_TIMEOUT", "20.0")),
        per_page=int(os.getenv("WCEFP_PER_PAGE", "12")),
        log_level=os.getenv("WCEFP_LOG_LEVEL", "INFO"),
        disable_analytics=_flag("WCEFP_DISABLE_ANALYTICS"),
        debug=_flag("WCEFP_DEBUG"),
        preferences_path=os.getenv("WCEFP_PREFERENCES_PATH"),
    )
