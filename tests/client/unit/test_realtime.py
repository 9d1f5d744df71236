import logging

from wcefp.client.errors import TransportError
from wcefp.client.models import SessionHandle
from wcefp.client.realtime import ConnectionState, RealtimeClient


def _client(transport, scheduler, **kwargs) -> RealtimeClient:
    return RealtimeClient(transport, scheduler=scheduler, **kwargs)


def test_connect_opens_session_and_schedules_poll(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "abc"})
    client = _client(fake_transport, fake_scheduler)
    connected = []
    client.on("connected", connected.append)

    client.connect()

    assert client.state is ConnectionState.CONNECTED
    assert client.is_connected
    assert client.session_id == "abc"
    assert connected == [{"session_id": "abc"}]
    assert fake_scheduler.pending_delays() == [5.0]


def test_connect_twice_does_not_open_second_session(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "abc"})
    client = _client(fake_transport, fake_scheduler)

    client.connect()
    client.connect()

    assert fake_transport.actions() == ["wcefp_realtime_connect"]


def test_reconnect_backoff_doubles_until_max_attempts(fake_transport, fake_scheduler) -> None:
    for _ in range(6):
        fake_transport.queue("wcefp_realtime_connect", TransportError("offline"))
    client = _client(fake_transport, fake_scheduler, reconnect_delay=1.0, max_reconnect_attempts=5)
    errors: list = []
    exhausted: list = []
    client.on("connection_error", errors.append)
    client.on("max_reconnects_reached", exhausted.append)

    client.connect()
    delays = []
    while fake_scheduler.pending:
        delay = fake_scheduler.pending_delays()[0]
        delays.append(delay)
        fake_scheduler.advance(delay)

    assert delays == [1.0, 2.0, 4.0, 8.0, 16.0]
    assert client.state is ConnectionState.FAILED
    assert len(errors) == 6
    assert exhausted == [None]
    assert fake_transport.actions().count("wcefp_realtime_connect") == 6


def test_successful_reconnect_resets_attempts(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", TransportError("offline"))
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "s2"})
    client = _client(fake_transport, fake_scheduler)

    client.connect()
    assert client.reconnect_attempts == 1
    fake_scheduler.advance(1.0)

    assert client.is_connected
    assert client.reconnect_attempts == 0
    assert client.session == SessionHandle(session_id="s2", is_connected=True, reconnect_attempts=0)


def test_manual_connect_after_failure_restarts_retries(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", TransportError("offline"))
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "again"})
    client = _client(fake_transport, fake_scheduler, max_reconnect_attempts=0)

    client.connect()
    assert client.state is ConnectionState.FAILED

    client.connect()

    assert client.is_connected
    assert client.session_id == "again"


def test_expired_session_reconnects_with_new_session(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "s1"})
    fake_transport.fail("wcefp_get_realtime_updates", "Session expired")
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "s2"})
    client = _client(fake_transport, fake_scheduler)
    events: list[str] = []
    client.on("connected", lambda data: events.append(f"connected:{data['session_id']}"))
    client.on("disconnected", lambda data: events.append("disconnected"))

    client.connect()
    fake_scheduler.advance(5.0)

    assert client.session_id == "s2"
    assert events == ["connected:s1", "disconnected", "connected:s2"]
    assert client.reconnect_attempts == 0


def test_poll_dispatches_updates_in_order(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "s1"})
    fake_transport.queue(
        "wcefp_get_realtime_updates",
        {
            "updates": [
                {"type": "booking_update", "message": "Nuova prenotazione"},
                {"type": "availability_update", "occurrence_id": 7, "available": 2},
                {"type": "weather_alert", "message": "Pioggia"},
                {"type": "notification", "message": "Ciao"},
            ]
        },
    )
    client = _client(fake_transport, fake_scheduler)
    received: list[tuple[str, str]] = []
    for event in ("booking_update", "availability_update", "notification", "update"):
        client.on(event, lambda update, event=event: received.append((event, update.type)))

    client.connect()
    fake_scheduler.advance(5.0)

    assert received == [
        ("booking_update", "booking_update"),
        ("availability_update", "availability_update"),
        ("update", "weather_alert"),
        ("notification", "notification"),
    ]
    assert fake_transport.requests[-1].session_id == "s1"
    assert fake_scheduler.pending_delays() == [5.0]


def test_failing_handler_does_not_block_others(fake_transport, fake_scheduler, caplog) -> None:
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "s1"})
    fake_transport.queue("wcefp_get_realtime_updates", {"updates": [{"type": "booking_update"}]})
    client = _client(fake_transport, fake_scheduler)
    calls: list[str] = []

    def broken(update) -> None:
        raise RuntimeError("boom")

    client.on("booking_update", broken)
    client.on("booking_update", lambda update: calls.append("second"))

    client.connect()
    with caplog.at_level(logging.ERROR):
        fake_scheduler.advance(5.0)

    assert calls == ["second"]
    assert "booking_update" in caplog.text
    assert client.is_connected


def test_rejected_poll_keeps_polling(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "s1"})
    fake_transport.fail("wcefp_get_realtime_updates", "Rate limited")
    client = _client(fake_transport, fake_scheduler)

    client.connect()
    fake_scheduler.advance(5.0)

    assert client.is_connected
    assert fake_scheduler.pending_delays() == [5.0]


def test_transport_error_while_polling_schedules_reconnect(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "s1"})
    fake_transport.queue("wcefp_get_realtime_updates", TransportError("timeout"))
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "s2"})
    client = _client(fake_transport, fake_scheduler)

    client.connect()
    fake_scheduler.advance(5.0)

    assert client.state is ConnectionState.DISCONNECTED
    assert fake_scheduler.pending_delays() == [1.0]

    fake_scheduler.advance(1.0)

    assert client.session_id == "s2"


def test_hidden_page_pauses_polling(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "s1"})
    client = _client(fake_transport, fake_scheduler)
    client.connect()

    client.set_visible(False)
    assert fake_scheduler.pending == []
    fake_scheduler.advance(30.0)
    assert fake_transport.actions() == ["wcefp_realtime_connect"]

    client.set_visible(True)
    assert fake_scheduler.pending_delays() == [5.0]


def test_disconnect_cancels_timers_and_clears_session(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", {"session_id": "s1"})
    client = _client(fake_transport, fake_scheduler)
    disconnected = []
    client.on("disconnected", disconnected.append)
    client.connect()

    client.disconnect()

    assert client.state is ConnectionState.DISCONNECTED
    assert client.session_id is None
    assert fake_scheduler.pending == []
    assert disconnected == [None]


def test_disconnect_cancels_pending_reconnect(fake_transport, fake_scheduler) -> None:
    fake_transport.queue("wcefp_realtime_connect", TransportError("offline"))
    client = _client(fake_transport, fake_scheduler)
    client.connect()
    assert fake_scheduler.pending_delays() == [1.0]

    client.disconnect()
    fake_scheduler.advance(10.0)

    assert fake_transport.actions() == ["wcefp_realtime_connect"]


def test_late_connect_reply_after_disconnect_is_dropped(fake_transport, fake_scheduler) -> None:
    client = _client(fake_transport, fake_scheduler)

    def reply_after_disconnect(request):
        client.disconnect()
        return {"session_id": "late"}

    fake_transport.queue("wcefp_realtime_connect", reply_after_disconnect)

    client.connect()

    assert client.state is ConnectionState.DISCONNECTED
    assert client.session_id is None
    assert fake_scheduler.pending == []


def test_from_settings_uses_configured_timings(fake_transport, fake_scheduler, monkeypatch) -> None:
    from wcefp.client.config import load_settings

    monkeypatch.setenv("WCEFP_POLL_INTERVAL_MS", "2500")
    monkeypatch.setenv("WCEFP_RECONNECT_DELAY_MS", "500")
    monkeypatch.setenv("WCEFP_MAX_RECONNECT_ATTEMPTS", "2")

    client = RealtimeClient.from_settings(fake_transport, load_settings(), scheduler=fake_scheduler)

    assert client.poll_interval == 2.5
    assert client.max_reconnect_attempts == 2
    assert client.backoff_delay(3) == 4.0
