"""In-memory backing data for the sandbox admin-ajax endpoint."""

from __future__ import annotations

import base64
from collections import Counter, defaultdict
import csv
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
import html
import io
import threading
import time
from typing import Any, Callable, Protocol

from wcefp.client.catalog import apply_filters, card_from_mapping, sort_cards
from wcefp.client.dashboard import growth_rate
from wcefp.client.gamification import ACHIEVEMENTS, BADGES, LEVEL_THRESHOLDS, estimate_points_for_action
from wcefp.client.i18n import SUPPORTED_LOCALES
from wcefp.client.logging import get_logger
from wcefp.client.models import ExperienceCard, FilterState
from wcefp.client.vouchers import status_label
from wcefp.sandbox.security import generate_session_id
from wcefp.sandbox.state import build_bookings, build_experiences, build_leaderboard, build_translations, build_vouchers

logger = get_logger(__name__)

SESSION_EXPIRED = "Session expired"
CALENDAR_STATUSES = ("confirmed", "pending")
UNSUPPORTED_LOCALE = "Unsupported locale"

RANGE_DAYS = {"7days": 7, "30days": 30, "90days": 90, "6months": 182, "1year": 365}
DEFAULT_RANGE = "30days"
EVENT_CAPACITY = 20
TOP_EVENTS_LIMIT = 5
RECENT_ACTIVITY_LIMIT = 10

# action_type -> (counter threshold, achievement id)
_ACHIEVEMENT_RULES = {
    "first_booking": (1, "first_booking"),
    "booking_completed": (20, "loyalty_member"),
    "review_submitted": (10, "reviewer"),
    "event_shared": (5, "social_butterfly"),
    "seasonal_event": (4, "seasonal_expert"),
}

# experience category -> (bookings needed, badge id)
_BADGE_RULES = {
    "wine": (5, "wine_expert"),
    "food": (10, "food_lover"),
    "outdoor": (5, "adventure_seeker"),
    "culture": (8, "culture_enthusiast"),
}


class ActionRejected(Exception):
    """The action is understood but refused; answered with ``success: false``."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SandboxStore(Protocol):
    def open_session(self) -> str:
        """Create a realtime session and return its id."""

    def updates_for(self, session_id: str) -> list[dict[str, Any]]:
        """Drain queued updates for a live session."""

    def expire_session(self, session_id: str) -> None:
        """Forget a session so its next poll reports expiry."""

    def push_update(self, update: dict[str, Any], session_id: str | None = None) -> int:
        """Queue an update for one session, or all of them; returns recipients."""

    def gamification_data(self) -> dict[str, Any]:
        """Return points, level, badges and achievements of the current user."""

    def award_points(self, points: int, action_type: str, action_data: dict[str, Any]) -> dict[str, Any]:
        """Record an action and return the authoritative totals."""

    def leaderboard(self, period: str) -> list[dict[str, Any]]:
        """Return ranked entries including the current user."""

    def experiences_page(self, page: int, per_page: int, filters: dict[str, str]) -> dict[str, Any]:
        """Render one page of filtered experiences as an HTML fragment."""

    def voucher_action(self, action_type: str, code: str) -> dict[str, Any]:
        """Apply a voucher action and return the reply payload."""

    def voucher_analytics(self) -> dict[str, Any]:
        """Summarise vouchers by status and month."""

    def export_bookings(
        self,
        date_from: str | None,
        date_to: str | None,
        status: str | None,
        event_id: int | None,
    ) -> dict[str, Any]:
        """Return a base64 CSV export of the matching bookings."""

    def export_calendar(self, event_id: int | None, date_range: str | None) -> dict[str, Any]:
        """Return a base64 ICS export of upcoming occurrences."""

    def track(self, event_name: str, event_data: str) -> None:
        """Record an analytics event."""

    def translations(self, locale: str, strings: list[str]) -> dict[str, Any]:
        """Translate the requested source strings into a supported locale."""

    def dashboard_data(self, date_range: str, start_date: str | None, end_date: str | None) -> dict[str, Any]:
        """Headline booking metrics with growth against the previous window."""

    def booking_trends(self, date_range: str, start_date: str | None, end_date: str | None, period: str) -> dict[str, Any]:
        """Bookings and revenue per day, ISO week or month."""

    def revenue_analytics(self, date_range: str, start_date: str | None, end_date: str | None) -> dict[str, Any]:
        """Revenue per experience, highest first."""

    def event_performance(
        self, date_range: str, start_date: str | None, end_date: str | None, limit: int
    ) -> list[dict[str, Any]]:
        """Per experience bookings, revenue and occupancy, highest revenue first."""


def level_for_points(points: int) -> int:
    return sum(1 for threshold in LEVEL_THRESHOLDS if points >= threshold)


def format_amount(amount: float) -> str:
    return "€" + f"{amount:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")


def render_experience(card: ExperienceCard) -> str:
    return (
        f'<article class="wcefp-experience-card" data-experience-id="{html.escape(str(card.experience_id))}" '
        f'data-category="{html.escape(card.category)}" data-price="{card.price:.2f}">'
        f'<h3 class="wcefp-card-title">{html.escape(card.title)}</h3>'
        f'<span class="wcefp-price">{format_amount(card.price)}</span>'
        "</article>"
    )


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d-%H-%M-%S")


def _encode(content: str) -> str:
    return base64.b64encode(content.encode("utf-8")).decode("ascii")


@dataclass
class _Session:
    session_id: str
    expires_at: float
    pending: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class InMemorySandboxStore:
    session_ttl: float = 300.0
    clock: Callable[[], float] = time.monotonic
    today: Callable[[], date] = date.today

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[str, _Session] = {}
        self._experiences = [card_from_mapping(item) for item in build_experiences()]
        self._vouchers: dict[str, dict[str, Any]] = {item["code"]: item for item in build_vouchers()}
        self._bookings = build_bookings()
        self._leaderboard = build_leaderboard()
        self._translations = build_translations()
        self._points = 0
        self._achievements: list[dict[str, Any]] = []
        self._badges: list[dict[str, Any]] = []
        self._action_counts: Counter[str] = Counter()
        self._category_counts: Counter[str] = Counter()
        self.tracked_events: list[dict[str, Any]] = []

    # Realtime sessions

    def open_session(self) -> str:
        session_id = generate_session_id()
        with self._lock:
            self._sessions[session_id] = _Session(session_id=session_id, expires_at=self.clock() + self.session_ttl)
        logger.info("Opened realtime session %s", session_id)
        return session_id

    def updates_for(self, session_id: str) -> list[dict[str, Any]]:
        now = self.clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.expires_at <= now:
                self._sessions.pop(session_id, None)
                raise ActionRejected(SESSION_EXPIRED)
            session.expires_at = now + self.session_ttl
            updates, session.pending = session.pending, []
        return updates

    def expire_session(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def push_update(self, update: dict[str, Any], session_id: str | None = None) -> int:
        with self._lock:
            if session_id is not None:
                targets = [self._sessions[session_id]] if session_id in self._sessions else []
            else:
                targets = list(self._sessions.values())
            for session in targets:
                session.pending.append(dict(update))
        return len(targets)

    # Gamification

    def gamification_data(self) -> dict[str, Any]:
        with self._lock:
            return {
                "points": self._points,
                "level": level_for_points(self._points),
                "badges": list(self._badges),
                "achievements": list(self._achievements),
            }

    def award_points(self, points: int, action_type: str, action_data: dict[str, Any]) -> dict[str, Any]:
        # The client's figure is only a preview; the ledger recomputes it
        awarded = estimate_points_for_action(action_type, action_data)
        if awarded <= 0:
            raise ActionRejected(f"Azione non riconosciuta: {action_type}")
        if awarded != points:
            logger.info("Client estimated %d points for %s, awarding %d", points, action_type, awarded)

        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            old_level = level_for_points(self._points)
            self._points += awarded
            self._action_counts[action_type] += 1
            category = str(action_data.get("category") or "")
            if category and action_type == "booking_completed":
                self._category_counts[category] += 1

            new_achievements = self._unlock_achievements(action_type, now)
            new_badges = self._earn_badges(category, now)
            return {
                "total_points": self._points,
                "old_level": old_level,
                "new_level": level_for_points(self._points),
                "achievements": new_achievements,
                "badges": new_badges,
            }

    def _unlock_achievements(self, action_type: str, unlocked_at: str) -> list[dict[str, Any]]:
        rule = _ACHIEVEMENT_RULES.get(action_type)
        if rule is None:
            return []
        needed, achievement_id = rule
        owned = {item["id"] for item in self._achievements}
        if achievement_id in owned or self._action_counts[action_type] < needed:
            return []
        definition = next(item for item in ACHIEVEMENTS if item.id == achievement_id)
        achievement = {
            "id": definition.id,
            "title": definition.title,
            "icon": definition.icon,
            "points": definition.points,
            "unlocked_at": unlocked_at,
        }
        self._achievements.append(achievement)
        self._points += definition.points
        return [achievement]

    def _earn_badges(self, category: str, earned_at: str) -> list[dict[str, Any]]:
        rule = _BADGE_RULES.get(category)
        if rule is None:
            return []
        needed, badge_id = rule
        owned = {item["id"] for item in self._badges}
        if badge_id in owned or self._category_counts[category] < needed:
            return []
        definition = next(item for item in BADGES if item.id == badge_id)
        badge = {"id": definition.id, "title": definition.title, "icon": definition.icon, "earned_at": earned_at}
        self._badges.append(badge)
        return [badge]

    def leaderboard(self, period: str) -> list[dict[str, Any]]:
        with self._lock:
            current = {
                "name": "Tu",
                "level": level_for_points(self._points),
                "points": self._points,
                "avatar": None,
                "is_current_user": True,
            }
            entries = [dict(entry, is_current_user=False) for entry in self._leaderboard] + [current]
        return sorted(entries, key=lambda entry: entry["points"], reverse=True)

    # Catalog

    def experiences_page(self, page: int, per_page: int, filters: dict[str, str]) -> dict[str, Any]:
        filter_state = FilterState(
            search=filters.get("search", "").lower(),
            category=filters.get("category", ""),
            price=filters.get("price", ""),
        )
        cards = apply_filters(self._experiences, filter_state)
        if filters.get("sortBy"):
            cards = sort_cards(cards, filters["sortBy"], filters.get("sortDir", "desc"))

        start = (page - 1) * per_page
        chunk = cards[start : start + per_page]
        return {
            "experiences": "".join(render_experience(card) for card in chunk),
            "has_more": start + per_page < len(cards),
            "count": len(chunk),
        }

    # Vouchers

    def voucher_action(self, action_type: str, code: str) -> dict[str, Any]:
        with self._lock:
            voucher = self._vouchers.get(code)
            if voucher is None:
                raise ActionRejected("Voucher non trovato")

            if action_type == "resend_email":
                return {"message": f"Email reinviata a {voucher['recipient_email']}"}
            if action_type == "cancel_voucher":
                if voucher["status"] != "active":
                    raise ActionRejected("Solo i voucher attivi possono essere annullati")
                voucher["status"] = "cancelled"
                logger.info("Voucher %s cancelled", code)
                return {"message": "Voucher annullato", "status_label": status_label("cancelled")}
            if action_type == "get_voucher_details":
                return {
                    "message": "",
                    "voucher": dict(voucher),
                    "formatted_amount": format_amount(voucher["amount"]),
                    "status_label": status_label(voucher["status"]),
                    "usage_history": [],
                }
        raise ActionRejected(f"Azione non valida: {action_type}")

    def voucher_analytics(self) -> dict[str, Any]:
        with self._lock:
            vouchers = [dict(item) for item in self._vouchers.values()]

        by_status: dict[str, dict[str, Any]] = {}
        by_month: dict[str, dict[str, Any]] = defaultdict(lambda: {"count": 0, "total_value": 0.0})
        for voucher in vouchers:
            stat = by_status.setdefault(voucher["status"], {"status": voucher["status"], "count": 0, "total_value": 0.0})
            stat["count"] += 1
            stat["total_value"] += voucher["amount"]
            month = (voucher.get("created_date") or "")[:7]
            if month:
                by_month[month]["count"] += 1
                by_month[month]["total_value"] += voucher["amount"]

        total = len(vouchers)
        redeemed = by_status.get("redeemed", {}).get("count", 0)
        return {
            "total_vouchers": total,
            "active_vouchers": by_status.get("active", {}).get("count", 0),
            "expired_vouchers": by_status.get("expired", {}).get("count", 0),
            "redemption_rate": round(redeemed / total * 100, 1) if total else 0.0,
            "status_breakdown": list(by_status.values()),
            "monthly_stats": [{"month": month, **values} for month, values in sorted(by_month.items())],
        }

    # Exports

    def export_bookings(
        self,
        date_from: str | None,
        date_to: str | None,
        status: str | None,
        event_id: int | None,
    ) -> dict[str, Any]:
        rows = [
            booking
            for booking in self._bookings
            if (not date_from or booking["date"] >= date_from)
            and (not date_to or booking["date"] <= date_to)
            and (not status or booking["status"] == status)
            and (not event_id or booking["product_id"] == event_id)
        ]
        if not rows:
            raise ActionRejected("No bookings found for export")
        rows.sort(key=lambda booking: (booking["date"], booking["id"]), reverse=True)

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["ID", "Evento", "Data", "Ora", "Nome", "Email", "Adulti", "Bambini", "Stato", "Totale", "Meeting point"])
        for booking in rows:
            writer.writerow(
                [
                    booking["id"],
                    booking["event_title"],
                    booking["date"],
                    booking["time"],
                    booking["name"],
                    booking["email"],
                    booking["adults"],
                    booking["children"],
                    booking["status"],
                    f"{booking['total']:.2f}",
                    booking["meeting_point"],
                ]
            )
        logger.info("Exported %d bookings", len(rows))
        return {"filename": f"wcefp-bookings-{_timestamp()}.csv", "content": _encode(buffer.getvalue()), "count": len(rows)}

    def export_calendar(self, event_id: int | None, date_range: str | None) -> dict[str, Any]:
        start, end = _parse_date_range(date_range)
        groups: dict[tuple[int, str, str], dict[str, Any]] = {}
        for booking in self._bookings:
            if booking["status"] not in CALENDAR_STATUSES:
                continue
            if event_id and booking["product_id"] != event_id:
                continue
            if (start and booking["date"] < start) or (end and booking["date"] > end):
                continue
            key = (booking["product_id"], booking["date"], booking["time"])
            group = groups.setdefault(key, {"booking": booking, "bookings": 0, "participants": 0})
            group["bookings"] += 1
            group["participants"] += booking["adults"] + booking["children"]
        if not groups:
            raise ActionRejected("No events found for calendar export")

        lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//WCEventsFP//Sandbox//IT", "CALSCALE:GREGORIAN"]
        for (product_id, day, hour), group in sorted(groups.items(), key=lambda item: (item[0][1], item[0][2])):
            booking = group["booking"]
            stamp = day.replace("-", "") + "T" + hour.replace(":", "") + "00"
            lines.extend(
                [
                    "BEGIN:VEVENT",
                    f"UID:wcefp-{product_id}-{stamp}@sandbox",
                    f"DTSTART:{stamp}",
                    f"SUMMARY:{booking['event_title']}",
                    f"LOCATION:{booking['meeting_point']}",
                    f"DESCRIPTION:Prenotazioni: {group['bookings']}\\, Partecipanti: {group['participants']}",
                    "END:VEVENT",
                ]
            )
        lines.append("END:VCALENDAR")
        return {
            "filename": f"wcefp-calendar-{_timestamp()}.ics",
            "content": _encode("\r\n".join(lines) + "\r\n"),
            "count": len(groups),
        }

    def track(self, event_name: str, event_data: str) -> None:
        with self._lock:
            self.tracked_events.append({"event_name": event_name, "event_data": event_data})

    # Translations

    def translations(self, locale: str, strings: list[str]) -> dict[str, Any]:
        info = SUPPORTED_LOCALES.get(locale)
        if info is None:
            raise ActionRejected(UNSUPPORTED_LOCALE)
        catalog = self._translations.get(locale, {})
        return {
            "locale": locale,
            "translations": {source: catalog.get(source, source) for source in strings},
            "locale_info": info.model_dump(),
        }

    # Dashboard

    def _window(self, date_range: str, start_date: str | None, end_date: str | None) -> tuple[date, date]:
        """Inclusive first and last day of the requested window."""
        if date_range == "custom":
            try:
                start = date.fromisoformat(start_date or "")
                end = date.fromisoformat(end_date or "")
            except ValueError as exc:
                raise ActionRejected("Intervallo di date non valido") from exc
            if start > end:
                raise ActionRejected("Intervallo di date non valido")
            return start, end
        days = RANGE_DAYS.get(date_range, RANGE_DAYS[DEFAULT_RANGE])
        end = self.today()
        return end - timedelta(days=days - 1), end

    def _booked_between(self, start: date, end: date) -> list[dict[str, Any]]:
        return [
            booking
            for booking in self._bookings
            if booking["status"] != "cancelled" and start <= date.fromisoformat(booking["created"]) <= end
        ]

    def _by_event(self, bookings: list[dict[str, Any]]) -> list[dict[str, Any]]:
        groups: dict[int, dict[str, Any]] = {}
        for booking in bookings:
            group = groups.setdefault(
                booking["product_id"],
                {
                    "event_id": booking["product_id"],
                    "event_title": booking["event_title"],
                    "booking_count": 0,
                    "participants": 0,
                    "revenue": 0.0,
                    "occurrences": set(),
                },
            )
            group["booking_count"] += 1
            group["participants"] += booking["adults"] + booking["children"]
            group["revenue"] += booking["total"]
            group["occurrences"].add((booking["date"], booking["time"]))
        return sorted(groups.values(), key=lambda group: group["revenue"], reverse=True)

    def dashboard_data(self, date_range: str, start_date: str | None, end_date: str | None) -> dict[str, Any]:
        start, end = self._window(date_range, start_date, end_date)
        previous_end = start - timedelta(days=1)
        previous_start = previous_end - (end - start)
        with self._lock:
            current = self._booked_between(start, end)
            previous = self._booked_between(previous_start, previous_end)
            clicks = sum(1 for event in self.tracked_events if event["event_name"] == "select_item")
            recent = sorted(self._bookings, key=lambda booking: (booking["created"], booking["id"]), reverse=True)

        revenue = sum(booking["total"] for booking in current)
        previous_revenue = sum(booking["total"] for booking in previous)
        return {
            "total_bookings": len(current),
            "total_revenue": revenue,
            "total_events": len({booking["product_id"] for booking in current}),
            "total_customers": len({booking["email"] for booking in current}),
            "avg_booking_value": round(revenue / len(current), 2) if current else 0.0,
            "conversion_rate": round(len(current) / clicks * 100, 1) if clicks else 0.0,
            "growth_rates": {
                "bookings": round(growth_rate(len(previous), len(current)), 1),
                "revenue": round(growth_rate(previous_revenue, revenue), 1),
            },
            "top_events": [
                {key: group[key] for key in ("event_id", "event_title", "booking_count", "revenue")}
                for group in self._by_event(current)[:TOP_EVENTS_LIMIT]
            ],
            "recent_activities": [
                {
                    "booking_id": booking["id"],
                    "booking_title": booking["event_title"],
                    "customer_email": booking["email"],
                    "status": booking["status"],
                    "created": booking["created"],
                    "total": booking["total"],
                }
                for booking in recent[:RECENT_ACTIVITY_LIMIT]
            ],
        }

    def booking_trends(self, date_range: str, start_date: str | None, end_date: str | None, period: str) -> dict[str, Any]:
        start, end = self._window(date_range, start_date, end_date)
        with self._lock:
            bookings = self._booked_between(start, end)

        labels: list[str] = []
        day = start
        while day <= end:
            label = _trend_label(day, period)
            if not labels or labels[-1] != label:
                labels.append(label)
            day += timedelta(days=1)
        counts = dict.fromkeys(labels, 0)
        revenue = dict.fromkeys(labels, 0.0)
        for booking in bookings:
            label = _trend_label(date.fromisoformat(booking["created"]), period)
            counts[label] += 1
            revenue[label] += booking["total"]
        return {"labels": labels, "bookings": list(counts.values()), "revenue": list(revenue.values())}

    def revenue_analytics(self, date_range: str, start_date: str | None, end_date: str | None) -> dict[str, Any]:
        start, end = self._window(date_range, start_date, end_date)
        with self._lock:
            groups = self._by_event(self._booked_between(start, end))
        return {
            "total_revenue": sum(group["revenue"] for group in groups),
            "by_event": [{key: group[key] for key in ("event_id", "event_title", "revenue")} for group in groups],
        }

    def event_performance(
        self, date_range: str, start_date: str | None, end_date: str | None, limit: int
    ) -> list[dict[str, Any]]:
        start, end = self._window(date_range, start_date, end_date)
        with self._lock:
            groups = self._by_event(self._booked_between(start, end))
        return [
            {
                "event_id": group["event_id"],
                "event_title": group["event_title"],
                "booking_count": group["booking_count"],
                "participants": group["participants"],
                "revenue": group["revenue"],
                "avg_booking_value": round(group["revenue"] / group["booking_count"], 2),
                "occupancy_rate": round(group["participants"] / (len(group["occurrences"]) * EVENT_CAPACITY) * 100, 1),
            }
            for group in groups[:limit]
        ]


def _trend_label(day: date, period: str) -> str:
    if period == "monthly":
        return f"{day.year}-{day.month:02d}"
    if period == "weekly":
        year, week, _ = day.isocalendar()
        return f"{year}-W{week:02d}"
    return day.isoformat()


def _parse_date_range(date_range: str | None) -> tuple[str | None, str | None]:
    """``YYYY-MM-DD..YYYY-MM-DD``; either side may be empty."""
    if not date_range or date_range == "all":
        return None, None
    start, _, end = date_range.partition("..")
    return start or None, end or None


def create_store(session_ttl: float = 300.0) -> SandboxStore:
    return InMemorySandboxStore(session_ttl=session_ttl)
