"""Admin analytics dashboard: overview metrics, trends, revenue and per-experience performance."""

from __future__ import annotations

from dataclasses import dataclass

from .actions import (
    BookingTrends,
    BookingTrendsRequest,
    DashboardData,
    DashboardDataRequest,
    EventPerformance,
    EventPerformanceRequest,
    RevenueAnalytics,
    RevenueAnalyticsRequest,
)
from .errors import FormValidationError
from .logging import get_logger
from .transport import AjaxTransport
from .validation import ensure_valid, validate_closure

logger = get_logger(__name__)

DATE_RANGES = ("7days", "30days", "90days", "6months", "1year", "custom")
TREND_PERIODS = ("daily", "weekly", "monthly")
INVALID_DATE = "Data non valida."


def growth_rate(previous: float, current: float) -> float:
    """Percentage change; growth from nothing counts as 100."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


@dataclass(frozen=True)
class GrowthIndicator:
    direction: str
    arrow: str
    text: str


def growth_indicator(rate: float) -> GrowthIndicator:
    positive = rate >= 0
    return GrowthIndicator(
        direction="positive" if positive else "negative",
        arrow="up" if positive else "down",
        text=f"{abs(rate):.1f}%",
    )


@dataclass(frozen=True)
class DashboardSnapshot:
    overview: DashboardData
    trends: BookingTrends
    revenue: RevenueAnalytics
    performance: list[EventPerformance]


class DashboardService:
    def __init__(self, transport: AjaxTransport, date_range: str = "30days") -> None:
        self._transport = transport
        self.date_range = "30days"
        self.start_date: str | None = None
        self.end_date: str | None = None
        self.set_date_range(date_range)

    def set_date_range(self, date_range: str, start_date: str | None = None, end_date: str | None = None) -> None:
        """A custom window needs both ends, in order; preset windows drop any dates."""
        if date_range not in DATE_RANGES:
            raise FormValidationError([f"Intervallo non valido: {date_range}"])
        if date_range == "custom":
            try:
                ensure_valid(validate_closure(start_date, end_date))
            except ValueError as exc:
                raise FormValidationError([INVALID_DATE]) from exc
        else:
            start_date = end_date = None
        self.date_range = date_range
        self.start_date = start_date
        self.end_date = end_date

    def _window(self) -> dict[str, str | None]:
        return {"date_range": self.date_range, "start_date": self.start_date, "end_date": self.end_date}

    def overview(self) -> DashboardData:
        return self._transport.call(DashboardDataRequest(**self._window()))

    def booking_trends(self, period: str = "daily") -> BookingTrends:
        if period not in TREND_PERIODS:
            raise FormValidationError([f"Periodo non valido: {period}"])
        return self._transport.call(BookingTrendsRequest(period=period, **self._window()))

    def revenue_analytics(self) -> RevenueAnalytics:
        return self._transport.call(RevenueAnalyticsRequest(**self._window()))

    def event_performance(self, limit: int = 10) -> list[EventPerformance]:
        return self._transport.call(EventPerformanceRequest(limit=limit, **self._window())).root

    def load_all(self, period: str = "daily") -> DashboardSnapshot:
        """Overview first; the charts are only fetched once it succeeded."""
        overview = self.overview()
        snapshot = DashboardSnapshot(
            overview=overview,
            trends=self.booking_trends(period),
            revenue=self.revenue_analytics(),
            performance=self.event_performance(),
        )
        logger.info("Dashboard loaded for %s: %d bookings", self.date_range, overview.total_bookings)
        return snapshot
