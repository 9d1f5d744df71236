"""Booking (CSV) and calendar (ICS) exports fetched through admin-ajax."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path, PurePath

from .actions import ExportBookingsRequest, ExportCalendarRequest, ExportResult
from .errors import TransportError
from .logging import get_logger
from .transport import AjaxTransport

logger = get_logger(__name__)

CSV_MIME_TYPE = "text/csv"
ICS_MIME_TYPE = "text/calendar"


@dataclass(frozen=True)
class ExportFile:
    filename: str
    content: bytes
    mime_type: str
    count: int = 0

    def save(self, directory: str | Path) -> Path:
        """Write the export under ``directory`` using only the base name."""
        # Handles both separators regardless of the host platform
        name = PurePath(self.filename.replace("\\", "/")).name
        if not name or name in {".", ".."}:
            raise ValueError(f"Refusing to write export with filename {self.filename!r}")
        target = Path(directory) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.content)
        logger.info("Saved %s (%d records) to %s", name, self.count, target)
        return target


def decode_export(result: ExportResult, mime_type: str) -> ExportFile:
    try:
        content = base64.b64decode(result.content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise TransportError(f"Export {result.filename!r} is not valid base64") from exc
    return ExportFile(filename=result.filename, content=content, mime_type=mime_type, count=result.count)


class ExportService:
    def __init__(self, transport: AjaxTransport) -> None:
        self._transport = transport

    def export_bookings(
        self,
        date_from: str | None = None,
        date_to: str | None = None,
        status: str | None = None,
        event_id: int | None = None,
    ) -> ExportFile:
        request = ExportBookingsRequest(date_from=date_from, date_to=date_to, status=status, event_id=event_id)
        return decode_export(self._transport.call(request), CSV_MIME_TYPE)

    def export_calendar(self, event_id: int | None = None, date_range: str | None = None) -> ExportFile:
        request = ExportCalendarRequest(event_id=event_id, date_range=date_range)
        return decode_export(self._transport.call(request), ICS_MIME_TYPE)
