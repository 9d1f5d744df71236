import base64

import pytest

from wcefp.client.errors import TransportError
from wcefp.client.exports import CSV_MIME_TYPE, ICS_MIME_TYPE, ExportService


def _encoded(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def test_export_bookings_decodes_csv(fake_transport) -> None:
    fake_transport.queue("wcefp_export_bookings", {"filename": "wcefp-bookings.csv", "content": _encoded("ID,Evento\n1,Tour\n"), "count": 1})

    export = ExportService(fake_transport).export_bookings(date_from="2025-06-01", status="confirmed")

    request = fake_transport.requests[0]
    assert request.date_from == "2025-06-01"
    assert request.status == "confirmed"
    assert request.to_form() == {"action": "wcefp_export_bookings", "date_from": "2025-06-01", "status": "confirmed"}
    assert export.mime_type == CSV_MIME_TYPE
    assert export.content == b"ID,Evento\n1,Tour\n"
    assert export.count == 1


def test_export_calendar_decodes_ics(fake_transport) -> None:
    fake_transport.queue("wcefp_export_calendar", {"filename": "wcefp-calendar.ics", "content": _encoded("BEGIN:VCALENDAR\r\n"), "count": 2})

    export = ExportService(fake_transport).export_calendar(event_id=101)

    assert export.mime_type == ICS_MIME_TYPE
    assert export.content.startswith(b"BEGIN:VCALENDAR")
    assert fake_transport.requests[0].event_id == 101


def test_save_uses_only_the_base_name(fake_transport, tmp_path) -> None:
    fake_transport.queue("wcefp_export_bookings", {"filename": "../../etc/bookings.csv", "content": _encoded("x"), "count": 0})
    export = ExportService(fake_transport).export_bookings()

    target = export.save(tmp_path / "out")

    assert target == tmp_path / "out" / "bookings.csv"
    assert target.read_bytes() == b"x"


def test_save_strips_windows_style_paths(fake_transport, tmp_path) -> None:
    fake_transport.queue("wcefp_export_calendar", {"filename": "..\\..\\calendar.ics", "content": _encoded("y"), "count": 0})

    target = ExportService(fake_transport).export_calendar().save(tmp_path)

    assert target.name == "calendar.ics"


def test_invalid_base64_is_transport_error(fake_transport) -> None:
    fake_transport.queue("wcefp_export_bookings", {"filename": "x.csv", "content": "not base64!!", "count": 0})

    with pytest.raises(TransportError):
        ExportService(fake_transport).export_bookings()
