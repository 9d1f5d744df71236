import logging

from wcefp.client.events import EventEmitter


def test_handlers_run_in_registration_order() -> None:
    emitter = EventEmitter()
    calls: list[str] = []
    emitter.on("ping", lambda data: calls.append(f"a:{data}"))
    emitter.on("ping", lambda data: calls.append(f"b:{data}"))

    emitter.emit("ping", 1)

    assert calls == ["a:1", "b:1"]


def test_off_removes_handler_and_unknown_events_are_ignored() -> None:
    emitter = EventEmitter()
    calls: list[object] = []
    emitter.on("ping", calls.append)

    emitter.off("ping", calls.append)
    emitter.off("missing", calls.append)
    emitter.emit("ping", "x")
    emitter.emit("nobody-listens", "y")

    assert calls == []
    assert emitter.listener_count("ping") == 0


def test_raising_handler_is_logged_and_skipped(caplog) -> None:
    emitter = EventEmitter()
    calls: list[str] = []

    def broken(data) -> None:
        raise ValueError("bad handler")

    emitter.on("ping", broken)
    emitter.on("ping", lambda data: calls.append("ok"))

    with caplog.at_level(logging.ERROR, logger="wcefp.client.events"):
        emitter.emit("ping")

    assert calls == ["ok"]
    assert "Error in event handler for ping" in caplog.text


def test_handler_may_unsubscribe_during_dispatch() -> None:
    emitter = EventEmitter()
    calls: list[str] = []

    def once(data) -> None:
        calls.append("once")
        emitter.off("ping", once)

    emitter.on("ping", once)
    emitter.on("ping", lambda data: calls.append("always"))

    emitter.emit("ping")
    emitter.emit("ping")

    assert calls == ["once", "always", "always"]
