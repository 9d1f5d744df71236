"""Polling session client for booking, availability and notification updates."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any

from .actions import RealtimeConnectRequest, RealtimeUpdate, RealtimeUpdatesRequest
from .config import ClientSettings
from .errors import ServerError, SessionExpiredError, TransportError, WcefpError
from .events import EventEmitter, Handler
from .logging import get_logger
from .models import SessionHandle
from .scheduling import Scheduler, ThreadingScheduler, TimerHandle
from .transport import AjaxTransport

logger = get_logger(__name__)

DISPATCHED_UPDATE_TYPES = frozenset({"booking_update", "availability_update", "notification"})


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class RealtimeClient:
    """Keeps a best-effort live feed by polling ``wcefp_get_realtime_updates``.

    Events emitted: ``connected``, ``disconnected``, ``connection_error``,
    ``max_reconnects_reached``, ``booking_update``, ``availability_update``,
    ``notification`` and ``update`` for any other update type.
    """

    def __init__(
        self,
        transport: AjaxTransport,
        scheduler: Scheduler | None = None,
        emitter: EventEmitter | None = None,
        poll_interval: float = 5.0,
        reconnect_delay: float = 1.0,
        max_reconnect_attempts: int = 5,
    ) -> None:
        self._transport = transport
        self._scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.events = emitter if emitter is not None else EventEmitter()
        self.poll_interval = poll_interval
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_attempts = max_reconnect_attempts

        self._lock = threading.RLock()
        self._state = ConnectionState.DISCONNECTED
        self._session_id: str | None = None
        self._reconnect_attempts = 0
        self._poll_timer: TimerHandle | None = None
        self._reconnect_timer: TimerHandle | None = None
        self._visible = True
        # Bumped on every disconnect so late replies of an old session are dropped
        self._epoch = 0

    @classmethod
    def from_settings(
        cls,
        transport: AjaxTransport,
        settings: ClientSettings,
        scheduler: Scheduler | None = None,
        emitter: EventEmitter | None = None,
    ) -> "RealtimeClient":
        return cls(
            transport=transport,
            scheduler=scheduler,
            emitter=emitter,
            poll_interval=settings.poll_interval,
            reconnect_delay=settings.reconnect_delay,
            max_reconnect_attempts=settings.max_reconnect_attempts,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def session(self) -> SessionHandle:
        with self._lock:
            return SessionHandle(
                session_id=self._session_id,
                is_connected=self.is_connected,
                reconnect_attempts=self._reconnect_attempts,
            )

    def on(self, event: str, handler: Handler) -> None:
        self.events.on(event, handler)

    def off(self, event: str, handler: Handler) -> None:
        self.events.off(event, handler)

    def backoff_delay(self, attempt: int) -> float:
        return self.reconnect_delay * (2**attempt)

    def connect(self) -> None:
        """Open a session; a manual call after exhausted retries starts counting again."""
        with self._lock:
            if self._state is ConnectionState.FAILED:
                self._reconnect_attempts = 0
                self._state = ConnectionState.DISCONNECTED
            self._cancel_reconnect()
        self._connect()

    def _connect(self) -> None:
        with self._lock:
            if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
                return
            self._state = ConnectionState.CONNECTING
            epoch = self._epoch

        try:
            result = self._transport.call(RealtimeConnectRequest())
        except WcefpError as exc:
            with self._lock:
                if epoch != self._epoch:
                    return
                self._state = ConnectionState.DISCONNECTED
            self._handle_connection_error(exc)
            return

        with self._lock:
            if epoch != self._epoch:
                logger.debug("Dropping session %s opened after disconnect", result.session_id)
                return
            self._session_id = result.session_id
            self._state = ConnectionState.CONNECTED
            self._reconnect_attempts = 0
            self._start_polling()

        logger.info("Real-time connection established (session %s)", result.session_id)
        self.events.emit("connected", {"session_id": result.session_id})

    def poll(self) -> None:
        """Fetch pending updates once; normally driven by the poll timer."""
        with self._lock:
            self._poll_timer = None
            if self._state is not ConnectionState.CONNECTED or not self._session_id:
                return
            session_id = self._session_id
            epoch = self._epoch

        try:
            result = self._transport.call(RealtimeUpdatesRequest(session_id=session_id))
        except SessionExpiredError:
            logger.info("Real-time session %s expired, reconnecting", session_id)
            self._handle_session_expired()
            return
        except ServerError as exc:
            logger.warning("Real-time poll rejected: %s", exc.message)
            with self._lock:
                if epoch == self._epoch and self._state is ConnectionState.CONNECTED:
                    self._schedule_poll()
            return
        except TransportError as exc:
            logger.warning("Error polling updates: %s", exc)
            with self._lock:
                if epoch != self._epoch:
                    return
                self._state = ConnectionState.DISCONNECTED
            self._handle_connection_error(exc)
            return

        with self._lock:
            if epoch != self._epoch or self._state is not ConnectionState.CONNECTED:
                return
            self._schedule_poll()

        self._process_updates(result.updates)

    def set_visible(self, visible: bool) -> None:
        """Pause polling while hidden and resume on return when still connected."""
        with self._lock:
            self._visible = visible
            if not visible:
                self._cancel_poll()
            elif self._state is ConnectionState.CONNECTED:
                self._start_polling()

    def disconnect(self) -> None:
        with self._lock:
            self._epoch += 1
            self._state = ConnectionState.DISCONNECTED
            self._session_id = None
            self._cancel_poll()
            self._cancel_reconnect()
        self.events.emit("disconnected")

    def __enter__(self) -> "RealtimeClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    def _process_updates(self, updates: list[RealtimeUpdate]) -> None:
        for update in updates:
            event = update.type if update.type in DISPATCHED_UPDATE_TYPES else "update"
            self.events.emit(event, update)

    def _handle_session_expired(self) -> None:
        self.disconnect()
        self._connect()

    def _handle_connection_error(self, error: Any) -> None:
        with self._lock:
            self._cancel_poll()
            attempt = self._reconnect_attempts
            exhausted = attempt >= self.max_reconnect_attempts
            if exhausted:
                self._state = ConnectionState.FAILED
            else:
                delay = self.backoff_delay(attempt)
                self._reconnect_attempts = attempt + 1
                self._reconnect_timer = self._scheduler.call_later(delay, self._reconnect)

        self.events.emit("connection_error", error)
        if exhausted:
            logger.error("Max reconnection attempts reached (%d)", self.max_reconnect_attempts)
            self.events.emit("max_reconnects_reached")
        else:
            logger.info("Reconnecting in %.1fs (attempt %d)", delay, attempt + 1)

    def _reconnect(self) -> None:
        with self._lock:
            self._reconnect_timer = None
            if self._state is not ConnectionState.DISCONNECTED:
                return
        logger.info("Reconnecting... (attempt %d)", self._reconnect_attempts)
        self._connect()

    def _start_polling(self) -> None:
        self._cancel_poll()
        self._schedule_poll()

    def _schedule_poll(self) -> None:
        if not self._visible or self._poll_timer is not None:
            return
        self._poll_timer = self._scheduler.call_later(self.poll_interval, self.poll)

    def _cancel_poll(self) -> None:
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None

    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None
