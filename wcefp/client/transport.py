"""HTTP transport for the WordPress ``admin-ajax.php`` boundary."""

from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from .actions import AjaxEnvelope, ActionRequest
from .errors import ServerError, TransportError
from .logging import get_logger

logger = get_logger(__name__)

USER_AGENT = "WCEventsFP-Client/1.0"

# admin-ajax.php answers these bare bodies instead of JSON
_WORDPRESS_SENTINELS = {
    "-1": "Nonce verification failed",
    "0": "Unknown or unregistered action",
}


class AjaxTransport(Protocol):
    def send(self, request: ActionRequest) -> AjaxEnvelope:
        """Post a request and return the decoded envelope."""

    def call(self, request: ActionRequest) -> Any:
        """Post a request and return its validated response model."""


def flatten_form(values: dict[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Encode nested values the way jQuery serializes ``$.post`` data."""
    pairs: list[tuple[str, str]] = []
    for key, value in values.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(value, dict):
            pairs.extend(flatten_form(value, prefix=name))
        elif isinstance(value, (list, tuple)):
            for item in value:
                if isinstance(item, dict):
                    pairs.extend(flatten_form(item, prefix=f"{name}[]"))
                else:
                    pairs.append((f"{name}[]", _scalar(item)))
        elif value is not None:
            pairs.append((name, _scalar(value)))
    return pairs


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def decode_response(request: ActionRequest, envelope: AjaxEnvelope) -> Any:
    """Validate ``envelope.data`` against the request's response model."""
    if not envelope.success:
        raise ServerError.from_data(envelope.data)
    try:
        return request.response_model.model_validate(envelope.data if envelope.data is not None else {})
    except ValidationError as exc:
        raise TransportError(f"Malformed reply for {request.action}: {exc}") from exc


class HttpAjaxTransport:
    """Posts form-encoded action requests and decodes the JSON envelope."""

    def __init__(
        self,
        ajax_url: str,
        nonce: str,
        timeout: float = 20.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.ajax_url = ajax_url
        self.nonce = nonce
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=httpx.Timeout(timeout))
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            "X-Requested-With": "XMLHttpRequest",
        }

    def send(self, request: ActionRequest) -> AjaxEnvelope:
        form = flatten_form({**request.to_form(), "nonce": self.nonce})
        try:
            response = self._client.post(
                self.ajax_url,
                content=urlencode(form),
                headers={**self._headers(), "Content-Type": "application/x-www-form-urlencoded"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning("Request %s failed: %s", request.action, exc)
            raise TransportError(f"{request.action}: {exc}") from exc

        body = response.text.strip()
        if body in _WORDPRESS_SENTINELS:
            raise TransportError(
                f"{request.action}: {_WORDPRESS_SENTINELS[body]}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise TransportError(
                f"{request.action}: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return AjaxEnvelope.model_validate_json(response.content)
        except ValidationError as exc:
            raise TransportError(
                f"{request.action}: response is not a JSON envelope",
                status_code=response.status_code,
            ) from exc

    def call(self, request: ActionRequest) -> Any:
        return decode_response(request, self.send(request))

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpAjaxTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
