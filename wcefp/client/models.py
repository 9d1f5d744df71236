"""Domain models shared across the client services."""

from __future__ import annotations

from dataclasses import dataclass, field
import datetime
from typing import Any


@dataclass(frozen=True)
class SessionHandle:
    session_id: str | None
    is_connected: bool
    reconnect_attempts: int


@dataclass(frozen=True)
class ExperienceCard:
    experience_id: int | str
    title: str
    category: str = ""
    price: float = 0.0
    rating: float | None = None
    popularity: int | None = None
    date: datetime.date | None = None
    location: str = ""
    duration: str = ""


@dataclass(frozen=True)
class FilterState:
    search: str = ""
    category: str = ""
    location: str = ""
    duration: str = ""
    price: str = ""
    rating: str = ""
    date: str = ""
    sort_by: str = "date"
    sort_dir: str = "desc"

    def as_request_filters(self) -> dict[str, str]:
        """Return the filters in the key layout the server expects."""
        return {
            "search": self.search,
            "category": self.category,
            "location": self.location,
            "duration": self.duration,
            "price": self.price,
            "rating": self.rating,
            "date": self.date,
            "sortBy": self.sort_by,
            "sortDir": self.sort_dir,
        }


@dataclass(frozen=True)
class CatalogRender:
    cards: tuple[ExperienceCard, ...]
    is_empty: bool
    result_count_text: str
    empty_message: str | None = None
    show_clear_filters: bool = False


@dataclass(frozen=True)
class GamificationSnapshot:
    points: int = 0
    level: int = 1
    badges: tuple[dict[str, Any], ...] = ()
    achievements: tuple[dict[str, Any], ...] = ()


@dataclass(frozen=True)
class BookingSelection:
    selected_date: str | None
    slot_id: int | str | None
    slot_available: int | None
    ticket_quantities: dict[str, int] = field(default_factory=dict)
    min_participants: int = 0

    @property
    def total_tickets(self) -> int:
        return sum(max(0, quantity) for quantity in self.ticket_quantities.values())
