"""Form checks run before a booking, gift or closure request leaves the client."""

from __future__ import annotations

import datetime
import re
from typing import Iterable, Mapping

from .errors import FormValidationError
from .models import BookingSelection

SELECT_DATE = "Seleziona una data e un orario."
SELECT_TICKETS = "Indica almeno 1 partecipante."
MAX_CAPACITY = "Posti disponibili insufficienti per lo slot selezionato."
MIN_PARTICIPANTS = "Numero minimo di partecipanti"
INVALID_EMAIL = "Indirizzo email non valido."
CLOSURE_DATES_REQUIRED = "Please select both start and end dates."
CLOSURE_ORDER = "Start date must be before or equal to end date."

QUANTITY_MIN = 0
QUANTITY_MAX = 10

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_booking_selection(selection: BookingSelection) -> list[str]:
    errors: list[str] = []
    if not selection.selected_date or selection.slot_id in (None, ""):
        errors.append(SELECT_DATE)

    total = selection.total_tickets
    if total == 0:
        errors.append(SELECT_TICKETS)

    if selection.slot_id not in (None, "") and selection.slot_available is not None and total > selection.slot_available:
        errors.append(MAX_CAPACITY)

    if selection.min_participants and total < selection.min_participants:
        errors.append(f"{MIN_PARTICIPANTS}: {selection.min_participants}")
    return errors


def clamp_quantity(current: int, delta: int, minimum: int = QUANTITY_MIN, maximum: int = QUANTITY_MAX) -> int:
    return max(minimum, min(maximum, current + delta))


def validate_email(value: str) -> bool:
    return bool(_EMAIL.match(value.strip()))


def validate_required(fields: Mapping[str, str], values: Mapping[str, str | None]) -> list[str]:
    """``fields`` maps field name to the message shown when it is blank."""
    errors = []
    for name, message in fields.items():
        value = values.get(name)
        if value is None or not str(value).strip():
            errors.append(message)
    return errors


def _as_date(value: str | datetime.date | None) -> datetime.date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(value)


def validate_closure(date_from: str | datetime.date | None, date_to: str | datetime.date | None) -> list[str]:
    start = _as_date(date_from)
    end = _as_date(date_to)
    if start is None or end is None:
        return [CLOSURE_DATES_REQUIRED]
    if start > end:
        return [CLOSURE_ORDER]
    return []


def ensure_valid(errors: Iterable[str]) -> None:
    errors = list(errors)
    if errors:
        raise FormValidationError(errors)
