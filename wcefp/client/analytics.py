"""Analytics event tracking with a bounded local buffer."""

from __future__ import annotations

from datetime import datetime, timezone
import json
from typing import Any, Callable, Iterable

from .actions import TrackAnalyticsRequest
from .config import ClientSettings
from .errors import WcefpError
from .logging import get_logger
from .storage import PreferenceStore
from .transport import AjaxTransport

logger = get_logger(__name__)

ANALYTICS_KEY = "wcefp_analytics"
BUFFER_LIMIT = 100
EVENT_CATEGORY = "wcefp_experiences"
ITEM_LIST_NAME = "experiences_catalog"

Sink = Callable[[str, dict[str, Any]], None]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_ga4(event_name: str, data: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Map an internal event onto a GA4 event name and parameters."""
    if event_name == "experience_card_click":
        return "select_item", {
            "item_list_name": ITEM_LIST_NAME,
            "items": [
                {
                    "item_id": data.get("experience_id"),
                    "item_name": data.get("experience_title"),
                    "item_category": "experience",
                    "index": data.get("position"),
                }
            ],
        }
    if event_name == "experience_load_more":
        return "view_item_list", {"item_list_name": ITEM_LIST_NAME, "page": data.get("page")}
    parameters = dict(data)
    parameters["event_category"] = EVENT_CATEGORY
    parameters["custom_parameters"] = dict(data)
    return event_name, parameters


class ServerSink:
    """Forwards events to ``wcefp_track_analytics``; failures are only logged."""

    def __init__(self, transport: AjaxTransport) -> None:
        self._transport = transport

    def __call__(self, event_name: str, parameters: dict[str, Any]) -> None:
        request = TrackAnalyticsRequest(event_name=event_name, event_data=json.dumps(parameters, default=str))
        try:
            self._transport.call(request)
        except WcefpError as exc:
            logger.warning("Could not send analytics event %s: %s", event_name, exc)


class EventTracker:
    def __init__(
        self,
        store: PreferenceStore | None = None,
        sinks: Iterable[Sink] = (),
        disabled: bool = False,
        debug: bool = False,
        buffer_limit: int = BUFFER_LIMIT,
    ) -> None:
        self._store = store
        self._sinks = list(sinks)
        self.disabled = disabled
        self.debug = debug
        self.buffer_limit = buffer_limit

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        store: PreferenceStore | None = None,
        sinks: Iterable[Sink] = (),
    ) -> "EventTracker":
        return cls(store=store, sinks=sinks, disabled=settings.disable_analytics, debug=settings.debug)

    def add_sink(self, sink: Sink) -> None:
        self._sinks.append(sink)

    def track(self, event_name: str, data: dict[str, Any] | None = None) -> None:
        if self.disabled:
            return
        payload = dict(data or {})
        ga4_name, parameters = to_ga4(event_name, payload)
        for sink in self._sinks:
            try:
                sink(ga4_name, parameters)
            except Exception:
                logger.exception("Analytics sink failed for %s", event_name)

        if self._store is not None:
            self._append_to_buffer({"event": event_name, "data": payload, "timestamp": _utc_now_iso()})

        if self.debug:
            logger.info("WCEventsFP Analytics: %s %s", event_name, payload)

    def buffered_events(self) -> list[dict[str, Any]]:
        if self._store is None:
            return []
        raw = self._store.get(ANALYTICS_KEY)
        if not raw:
            return []
        try:
            events = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable analytics buffer")
            return []
        return events if isinstance(events, list) else []

    def clear_buffer(self) -> None:
        if self._store is not None:
            self._store.remove(ANALYTICS_KEY)

    def _append_to_buffer(self, event: dict[str, Any]) -> None:
        events = self.buffered_events()
        events.append(event)
        if len(events) > self.buffer_limit:
            del events[: len(events) - self.buffer_limit]
        self._store.set(ANALYTICS_KEY, json.dumps(events, default=str))
