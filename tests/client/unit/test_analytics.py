import json
import logging

from wcefp.client.analytics import BUFFER_LIMIT, EventTracker, ServerSink, to_ga4
from wcefp.client.errors import TransportError
from wcefp.client.storage import InMemoryPreferenceStore


def test_card_click_maps_to_select_item() -> None:
    name, params = to_ga4("experience_card_click", {"experience_id": 7, "experience_title": "Tour", "position": 2})

    assert name == "select_item"
    assert params["items"] == [{"item_id": 7, "item_name": "Tour", "item_category": "experience", "index": 2}]


def test_other_events_carry_category_and_custom_parameters() -> None:
    name, params = to_ga4("experience_sort", {"sort_by": "price"})

    assert name == "experience_sort"
    assert params["event_category"] == "wcefp_experiences"
    assert params["custom_parameters"] == {"sort_by": "price"}


def test_buffer_keeps_only_the_latest_events() -> None:
    tracker = EventTracker(store=InMemoryPreferenceStore())

    for index in range(BUFFER_LIMIT + 5):
        tracker.track("experience_view", {"index": index})

    events = tracker.buffered_events()
    assert len(events) == BUFFER_LIMIT
    assert events[0]["data"] == {"index": 5}
    assert events[-1]["data"] == {"index": BUFFER_LIMIT + 4}
    assert "timestamp" in events[-1]


def test_disabled_tracker_does_nothing() -> None:
    calls: list = []
    tracker = EventTracker(store=InMemoryPreferenceStore(), sinks=[lambda name, params: calls.append(name)], disabled=True)

    tracker.track("experience_view", {})

    assert calls == []
    assert tracker.buffered_events() == []


def test_failing_sink_does_not_stop_tracking(caplog) -> None:
    def broken(name, params) -> None:
        raise RuntimeError("sink down")

    calls: list[str] = []
    tracker = EventTracker(store=InMemoryPreferenceStore(), sinks=[broken, lambda name, params: calls.append(name)])

    with caplog.at_level(logging.ERROR):
        tracker.track("filters_cleared")

    assert calls == ["filters_cleared"]
    assert len(tracker.buffered_events()) == 1
    assert "Analytics sink failed" in caplog.text


def test_server_sink_sends_json_event_data(fake_transport) -> None:
    fake_transport.queue("wcefp_track_analytics", {"message": "ok"})

    ServerSink(fake_transport)("select_item", {"items": [1]})

    request = fake_transport.requests[0]
    assert request.event_name == "select_item"
    assert json.loads(request.event_data) == {"items": [1]}


def test_server_sink_logs_transport_failures(fake_transport, caplog) -> None:
    fake_transport.queue("wcefp_track_analytics", TransportError("offline"))

    with caplog.at_level(logging.WARNING):
        ServerSink(fake_transport)("page_view", {})

    assert "Could not send analytics event page_view" in caplog.text


def test_clear_buffer() -> None:
    tracker = EventTracker(store=InMemoryPreferenceStore())
    tracker.track("experience_view")

    tracker.clear_buffer()

    assert tracker.buffered_events() == []
