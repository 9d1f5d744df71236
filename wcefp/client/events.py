"""Synchronous event emitter used by the realtime client and its consumers."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

from .logging import get_logger

logger = get_logger(__name__)

Handler = Callable[[Any], None]


class EventEmitter:
    """Dispatches events to handlers in registration order.

    A handler that raises is logged and skipped; the remaining handlers
    still run and the caller of ``emit`` never sees the exception.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def on(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return
        if not handlers:
            self._handlers.pop(event, None)

    def emit(self, event: str, data: Any = None) -> None:
        # Snapshot so handlers may unsubscribe while being dispatched
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(data)
            except Exception:
                logger.exception("Error in event handler for %s", event)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))
