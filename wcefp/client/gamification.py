"""Points, levels, achievements and badges as shown to the customer.

The server owns every number here. The helpers in this module only
preview what an action is worth and how far the user is from the next
level; whatever ``wcefp_award_points`` returns replaces the local view.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import json
import math
from typing import Any, Mapping

from .actions import (
    AwardPointsRequest,
    AwardResult,
    GamificationDataRequest,
    LeaderboardEntry,
    LeaderboardRequest,
)
from .errors import ServerError
from .events import EventEmitter
from .logging import get_logger
from .models import GamificationSnapshot
from .transport import AjaxTransport

logger = get_logger(__name__)

LEVEL_THRESHOLDS: tuple[int, ...] = (
    0, 100, 250, 500, 1000, 1800, 3000, 4500, 6500, 9000,
    12000, 16000, 21000, 27000, 34000, 42000, 52000, 64000, 78000, 95000,
)

POINTS_FOR_ACTION: dict[str, int] = {
    "event_viewed": 1,
    "event_shared": 5,
    "booking_completed": 10,
    "review_submitted": 8,
    "profile_completed": 15,
    "first_booking": 20,
    "referral_successful": 25,
    "seasonal_event": 12,
    "consecutive_booking": 15,
}

LEADERBOARD_PERIODS = ("weekly", "monthly", "all-time")
RANK_MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    icon: str
    points: int = 0


ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition("first_booking", "Prima Esperienza", "Completa la tua prima prenotazione", "🎟️", 20),
    AchievementDefinition("early_bird", "Early Bird", "Prenota un evento con più di 7 giorni di anticipo", "🐦", 10),
    AchievementDefinition("social_butterfly", "Social Butterfly", "Condividi 5 eventi sui social media", "🦋", 25),
    AchievementDefinition("reviewer", "Critico Esperto", "Scrivi 10 recensioni", "⭐", 50),
    AchievementDefinition("explorer", "Esploratore", "Prenota eventi in 5 città diverse", "🗺️", 75),
    AchievementDefinition("group_leader", "Leader del Gruppo", "Organizza una prenotazione per più di 8 persone", "👥", 40),
    AchievementDefinition("seasonal_expert", "Esperto Stagionale", "Partecipa a eventi in tutte e 4 le stagioni", "🍂", 60),
    AchievementDefinition("loyalty_member", "Membro Fedele", "Completa 20 prenotazioni", "💎", 100),
)

BADGES: tuple[AchievementDefinition, ...] = (
    AchievementDefinition("wine_expert", "Esperto di Vini", "Partecipa a 5 degustazioni di vino", "🍷"),
    AchievementDefinition("food_lover", "Amante del Cibo", "Prenota 10 esperienze gastronomiche", "🍽️"),
    AchievementDefinition("adventure_seeker", "Cercatore di Avventure", "Completa 5 attività all'aperto", "🏔️"),
    AchievementDefinition("culture_enthusiast", "Appassionato di Cultura", "Visita 8 musei o siti culturali", "🏛️"),
    AchievementDefinition("night_owl", "Gufo Notturno", "Prenota 3 eventi serali", "🦉"),
    AchievementDefinition("weekend_warrior", "Guerriero del Weekend", "Prenota 10 eventi nel weekend", "⚔️"),
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _number(data: Mapping[str, Any], key: str) -> float:
    try:
        return float(data.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


def estimate_points_for_action(action: str, data: Mapping[str, Any] | None = None) -> int:
    data = data or {}
    points: float = POINTS_FOR_ACTION.get(action, 0)
    if action == "booking_completed":
        booking_value = _number(data, "booking_value")
        if booking_value > 100:
            points *= 1.5
        if booking_value > 200:
            points *= 2
        group_size = _number(data, "group_size")
        if group_size > 2:
            points += group_size
    return _round_half_up(points)


def points_for_current_level(level: int) -> int:
    if 1 <= level <= len(LEVEL_THRESHOLDS):
        return LEVEL_THRESHOLDS[level - 1]
    return 0


def points_for_next_level(level: int) -> int:
    if 0 <= level < len(LEVEL_THRESHOLDS):
        return LEVEL_THRESHOLDS[level]
    return LEVEL_THRESHOLDS[-1]


def progress_to_next_level(points: int, level: int) -> float:
    current = points_for_current_level(level)
    span = points_for_next_level(level) - current
    if span <= 0:
        return 100.0
    return max(0.0, min(100.0, (points - current) / span * 100))


def unlocked_achievement_ids(snapshot: GamificationSnapshot) -> set[str]:
    return {str(item.get("id")) for item in snapshot.achievements}


def owned_badge_ids(snapshot: GamificationSnapshot) -> set[str]:
    return {str(item.get("id")) for item in snapshot.badges}


def rank_label(position: int) -> str:
    return RANK_MEDALS.get(position, f"#{position}")


class GamificationService:
    def __init__(self, transport: AjaxTransport, emitter: EventEmitter | None = None) -> None:
        self._transport = transport
        self.events = emitter if emitter is not None else EventEmitter()
        self.snapshot = GamificationSnapshot()

    def load(self) -> GamificationSnapshot:
        data = self._transport.call(GamificationDataRequest())
        self.snapshot = GamificationSnapshot(
            points=data.points,
            level=data.level,
            badges=tuple(badge.model_dump() for badge in data.badges),
            achievements=tuple(achievement.model_dump() for achievement in data.achievements),
        )
        return self.snapshot

    def progress(self) -> float:
        return progress_to_next_level(self.snapshot.points, self.snapshot.level)

    def award_points(self, action: str, data: Mapping[str, Any] | None = None) -> AwardResult | None:
        """Ask the server to award ``action``; returns None when nothing was sent or granted."""
        data = dict(data or {})
        points = estimate_points_for_action(action, data)
        if points <= 0:
            return None

        request = AwardPointsRequest(points=points, action_type=action, action_data=json.dumps(data, default=str))
        try:
            result = self._transport.call(request)
        except ServerError as exc:
            logger.error("Failed to award points for %s: %s", action, exc.message)
            return None

        self._apply_award(result)
        return result

    def _apply_award(self, result: AwardResult) -> None:
        old_points = self.snapshot.points
        snapshot = replace(self.snapshot, points=result.total_points)
        gained = result.total_points - old_points

        if result.new_level > result.old_level:
            snapshot = replace(snapshot, level=result.new_level)

        new_achievements = tuple(item.model_dump() for item in result.achievements)
        new_badges = tuple(item.model_dump() for item in result.badges)
        snapshot = replace(
            snapshot,
            achievements=snapshot.achievements + new_achievements,
            badges=snapshot.badges + new_badges,
        )
        self.snapshot = snapshot

        if gained > 0:
            self.events.emit("points_awarded", {"points": gained, "total_points": result.total_points})
        if result.new_level > result.old_level:
            logger.info("Level up: %d -> %d", result.old_level, result.new_level)
            self.events.emit("level_up", {"old_level": result.old_level, "new_level": result.new_level})
        for achievement in new_achievements:
            self.events.emit("achievement_unlocked", achievement)
        for badge in new_badges:
            self.events.emit("badge_earned", badge)

    def load_leaderboard(self, period: str = "weekly") -> list[LeaderboardEntry]:
        if period not in LEADERBOARD_PERIODS:
            raise ValueError(f"Unknown leaderboard period {period!r}")
        leaderboard = self._transport.call(LeaderboardRequest(period=period))
        return list(leaderboard.root)
