"""Exception types raised by the client toolkit."""

from __future__ import annotations

from typing import Any

GENERIC_ERROR_MESSAGE = "Si è verificato un errore"
SESSION_EXPIRED_MARKER = "Session expired"


class WcefpError(Exception):
    """Base class for all toolkit errors."""


class TransportError(WcefpError):
    """The request never produced a usable JSON envelope."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ServerError(WcefpError):
    """The server answered with ``success: false``."""

    def __init__(self, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data

    @classmethod
    def from_data(cls, data: Any) -> "ServerError":
        message = extract_message(data)
        if SESSION_EXPIRED_MARKER in message:
            return SessionExpiredError(message, data)
        return cls(message, data)


class SessionExpiredError(ServerError):
    """The realtime session id is no longer known to the server."""


class FormValidationError(WcefpError):
    """Client-side validation failed; nothing was sent to the server."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


def extract_message(data: Any) -> str:
    """Return the human readable message of a failure payload."""
    if isinstance(data, dict):
        for key in ("message", "msg"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    if isinstance(data, str) and data:
        return data
    return GENERIC_ERROR_MESSAGE
