"""Availability presentation rules and a board fed by realtime updates."""

from __future__ import annotations

from dataclasses import dataclass

from .actions import RealtimeUpdate
from .events import EventEmitter

SOLD_OUT = "sold-out"
CRITICAL = "critical"
LIMITED = "limited"
AVAILABLE = "available"


def classify_availability(available: int) -> str:
    if available <= 0:
        return SOLD_OUT
    if available <= 3:
        return CRITICAL
    if available <= 10:
        return LIMITED
    return AVAILABLE


def availability_label(available: int) -> str:
    level = classify_availability(available)
    if level == SOLD_OUT:
        return "❌ Sold Out"
    if level == CRITICAL:
        return f"⚠️ Solo {available} posti rimasti!"
    if level == LIMITED:
        return f"⚠️ {available} posti disponibili"
    return f"✅ {available}+ posti disponibili"


def capacity_percentage(booked: int, capacity: int) -> float | None:
    if capacity <= 0:
        return None
    return (booked / capacity) * 100


def is_bookable(update: RealtimeUpdate) -> bool:
    return (update.available or 0) > 0 and update.status == "active"


@dataclass(frozen=True)
class AvailabilityView:
    available: int
    level: str
    label: str
    bookable: bool
    capacity_percentage: float | None


class AvailabilityBoard:
    """Latest availability per occurrence/product plus a running booking counter."""

    def __init__(self, emitter: EventEmitter, initial_bookings: int = 0) -> None:
        self.by_occurrence: dict[str, AvailabilityView] = {}
        self.by_product: dict[str, AvailabilityView] = {}
        self.total_bookings = initial_bookings
        self.notifications: list[RealtimeUpdate] = []
        self._emitter = emitter
        emitter.on("availability_update", self.handle_availability_update)
        emitter.on("booking_update", self.handle_booking_update)
        emitter.on("notification", self.handle_notification)

    def detach(self) -> None:
        self._emitter.off("availability_update", self.handle_availability_update)
        self._emitter.off("booking_update", self.handle_booking_update)
        self._emitter.off("notification", self.handle_notification)

    def handle_availability_update(self, update: RealtimeUpdate) -> None:
        available = update.available or 0
        view = AvailabilityView(
            available=available,
            level=classify_availability(available),
            label=availability_label(available),
            bookable=is_bookable(update),
            capacity_percentage=(
                capacity_percentage(update.booked or 0, update.capacity)
                if update.capacity is not None
                else None
            ),
        )
        if update.occurrence_id is not None:
            self.by_occurrence[str(update.occurrence_id)] = view
        if update.product_id is not None:
            self.by_product[str(update.product_id)] = view

    def handle_booking_update(self, update: RealtimeUpdate) -> None:
        self.total_bookings += 1

    def handle_notification(self, update: RealtimeUpdate) -> None:
        self.notifications.append(update)
