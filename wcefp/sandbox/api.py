"""FastAPI double of WordPress ``admin-ajax.php`` for the WCEventsFP actions."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError

from wcefp.client.actions import ACTION_NAMES, parse_request
from wcefp.client.logging import get_logger
from wcefp.sandbox.config import SandboxSettings, load_settings
from wcefp.sandbox.engine import handle_request
from wcefp.sandbox.security import create_nonce, verify_nonce
from wcefp.sandbox.store import ActionRejected, InMemorySandboxStore, SandboxStore

logger = get_logger(__name__)

AJAX_PATH = "/wp-admin/admin-ajax.php"
INVALID_REQUEST = "Richiesta non valida"

_BRACKETS = re.compile(r"\[([^\]]*)\]")


def unflatten_form(pairs: list[tuple[str, str]]) -> dict[str, Any]:
    """Rebuild ``filters[search]`` / ``items[]`` keys into nested values, as PHP does.

    Raises ValueError when a key nests under a name already holding a plain value.
    """
    payload: dict[str, Any] = {}
    for key, value in pairs:
        head, _, rest = key.partition("[")
        parts = [head] + (_BRACKETS.findall("[" + rest) if rest else [])
        target: Any = payload
        for index, part in enumerate(parts):
            last = index == len(parts) - 1
            next_is_list = not last and parts[index + 1] == ""
            if isinstance(target, list):
                if last:
                    target.append(value)
                    break
                container: Any = [] if next_is_list else {}
                target.append(container)
                target = container
                continue
            if last:
                target[part] = value
            else:
                target = target.setdefault(part, [] if next_is_list else {})
                if not isinstance(target, (dict, list)):
                    raise ValueError(f"Form key {key!r} conflicts with a plain value")
    return payload


def _envelope(success: bool, data: Any) -> JSONResponse:
    return JSONResponse({"success": success, "data": data})


def create_app(store: SandboxStore | None = None, settings: SandboxSettings | None = None) -> FastAPI:
    app = FastAPI(title="WCEventsFP Sandbox", version="0.1.0")
    sandbox_settings = settings if settings is not None else load_settings()
    sandbox_store = store if store is not None else InMemorySandboxStore(session_ttl=sandbox_settings.session_ttl)
    app.state.store = sandbox_store
    app.state.nonce = create_nonce(sandbox_settings.secret)

    def get_store() -> SandboxStore:
        return sandbox_store

    @app.get(AJAX_PATH)
    def admin_ajax_get() -> Response:
        return PlainTextResponse("0", status_code=400)

    @app.post(AJAX_PATH)
    async def admin_ajax(request: Request, local_store: SandboxStore = Depends(get_store)) -> Response:
        body = (await request.body()).decode("utf-8", errors="replace")
        try:
            payload = unflatten_form(parse_qsl(body, keep_blank_values=True))
        except ValueError as exc:
            logger.warning("Rejected malformed form body: %s", exc)
            return _envelope(False, {"message": INVALID_REQUEST})

        action = payload.get("action")
        if action not in ACTION_NAMES:
            return PlainTextResponse("0", status_code=400)
        nonce = payload.pop("nonce", "")
        if not isinstance(nonce, str) or not verify_nonce(nonce, sandbox_settings.secret):
            logger.warning("Rejected %s: bad nonce", action)
            return PlainTextResponse("-1", status_code=403)

        try:
            action_request = parse_request(payload)
        except ValidationError as exc:
            return _envelope(False, {"message": INVALID_REQUEST, "errors": exc.errors(include_url=False, include_context=False)})

        try:
            data = handle_request(local_store, action_request)
        except ActionRejected as exc:
            return _envelope(False, {"message": exc.message})
        return _envelope(True, data)

    return app


app = create_app()
