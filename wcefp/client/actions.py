"""Typed request/response pairs for every ``admin-ajax.php`` action the toolkit issues."""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel, TypeAdapter


class AjaxEnvelope(BaseModel):
    """WordPress ``wp_send_json_*`` reply."""

    success: bool
    data: Any = None


# Response payloads


class ConnectResult(BaseModel):
    session_id: str = Field(min_length=1)


class RealtimeUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    message: str | None = None
    occurrence_id: int | str | None = None
    product_id: int | str | None = None
    available: int | None = None
    capacity: int | None = None
    booked: int | None = None
    status: str | None = None
    notification_type: str | None = None


class UpdatesResult(BaseModel):
    updates: list[RealtimeUpdate] = Field(default_factory=list)


class LoadMoreResult(BaseModel):
    experiences: str = ""
    has_more: bool = False
    count: int = 0


class Achievement(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    icon: str = ""
    points: int = 0
    unlocked_at: str | None = None


class Badge(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    icon: str = ""
    earned_at: str | None = None


class GamificationData(BaseModel):
    points: int = 0
    level: int = 1
    badges: list[Badge] = Field(default_factory=list)
    achievements: list[Achievement] = Field(default_factory=list)


class AwardResult(BaseModel):
    total_points: int
    old_level: int = 1
    new_level: int = 1
    achievements: list[Achievement] = Field(default_factory=list)
    badges: list[Badge] = Field(default_factory=list)


class LeaderboardEntry(BaseModel):
    name: str
    level: int = 1
    points: int = 0
    avatar: str | None = None
    is_current_user: bool = False


class Leaderboard(RootModel[list[LeaderboardEntry]]):
    pass


class VoucherRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: str
    status: str
    amount: float = 0.0
    product_name: str | None = None
    recipient_name: str | None = None
    recipient_email: str | None = None
    sender_name: str | None = None
    message: str | None = None
    created_date: str | None = None
    expiry_date: str | None = None


class VoucherActionResult(BaseModel):
    message: str = ""
    voucher: VoucherRecord | None = None
    formatted_amount: str | None = None
    status_label: str | None = None
    usage_history: list[dict[str, Any]] = Field(default_factory=list)


class StatusStat(BaseModel):
    status: str
    count: int = 0
    total_value: float = 0.0


class MonthlyStat(BaseModel):
    month: str
    count: int = 0
    total_value: float = 0.0


class VoucherAnalytics(BaseModel):
    total_vouchers: int = 0
    active_vouchers: int = 0
    expired_vouchers: int = 0
    redemption_rate: float = 0.0
    status_breakdown: list[StatusStat] = Field(default_factory=list)
    monthly_stats: list[MonthlyStat] = Field(default_factory=list)


class ExportResult(BaseModel):
    filename: str = Field(min_length=1)
    content: str
    count: int = 0


class LocaleInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    flag: str = ""
    currency: str
    date_format: str = "d/m/Y"
    time_format: str = "H:i"
    decimal_separator: str = "."
    thousands_separator: str = ","
    direction: Literal["ltr", "rtl"] = "ltr"


class TranslationsResult(BaseModel):
    locale: str = Field(min_length=1)
    translations: dict[str, str] = Field(default_factory=dict)
    locale_info: LocaleInfo


class GrowthRates(BaseModel):
    bookings: float = 0.0
    revenue: float = 0.0


class TopEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    event_id: int | None = None
    event_title: str = ""
    booking_count: int = 0
    revenue: float = 0.0


class RecentActivity(BaseModel):
    model_config = ConfigDict(extra="allow")

    booking_id: int | None = None
    booking_title: str = ""
    customer_email: str = ""
    status: str = ""
    created: str | None = None
    total: float = 0.0


class DashboardData(BaseModel):
    total_bookings: int = 0
    total_revenue: float = 0.0
    total_events: int = 0
    total_customers: int = 0
    avg_booking_value: float = 0.0
    conversion_rate: float = 0.0
    growth_rates: GrowthRates = Field(default_factory=GrowthRates)
    top_events: list[TopEvent] = Field(default_factory=list)
    recent_activities: list[RecentActivity] = Field(default_factory=list)


class BookingTrends(BaseModel):
    labels: list[str] = Field(default_factory=list)
    bookings: list[int] = Field(default_factory=list)
    revenue: list[float] = Field(default_factory=list)


class EventRevenue(BaseModel):
    event_id: int | None = None
    event_title: str = ""
    revenue: float = 0.0


class RevenueAnalytics(BaseModel):
    total_revenue: float = 0.0
    by_event: list[EventRevenue] = Field(default_factory=list)


class EventPerformance(BaseModel):
    model_config = ConfigDict(extra="allow")

    event_id: int | None = None
    event_title: str = ""
    booking_count: int = 0
    participants: int = 0
    revenue: float = 0.0
    avg_booking_value: float = 0.0
    occupancy_rate: float = 0.0


class EventPerformanceList(RootModel[list[EventPerformance]]):
    pass


class Acknowledgement(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: str = ""


# Requests


class ActionRequest(BaseModel):
    response_model: ClassVar[type[BaseModel]] = Acknowledgement

    def to_form(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class RealtimeConnectRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = ConnectResult

    action: Literal["wcefp_realtime_connect"] = "wcefp_realtime_connect"


class RealtimeUpdatesRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = UpdatesResult

    action: Literal["wcefp_get_realtime_updates"] = "wcefp_get_realtime_updates"
    session_id: str = Field(min_length=1)


class LoadMoreExperiencesRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = LoadMoreResult

    action: Literal["wcefp_load_more_experiences"] = "wcefp_load_more_experiences"
    page: int = Field(ge=1)
    per_page: int = Field(default=12, ge=1)
    filters: dict[str, str] = Field(default_factory=dict)


class GamificationDataRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = GamificationData

    action: Literal["wcefp_get_user_gamification_data"] = "wcefp_get_user_gamification_data"


class AwardPointsRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = AwardResult

    action: Literal["wcefp_award_points"] = "wcefp_award_points"
    points: int = Field(gt=0)
    action_type: str = Field(min_length=1)
    action_data: str = "{}"


class LeaderboardRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = Leaderboard

    action: Literal["wcefp_get_leaderboard"] = "wcefp_get_leaderboard"
    period: Literal["weekly", "monthly", "all-time"] = "weekly"


class VoucherActionRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = VoucherActionResult

    action: Literal["wcefp_voucher_action"] = "wcefp_voucher_action"
    action_type: Literal["resend_email", "cancel_voucher", "get_voucher_details"]
    voucher_code: str = Field(min_length=1)


class VoucherAnalyticsRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = VoucherAnalytics

    action: Literal["wcefp_get_voucher_analytics"] = "wcefp_get_voucher_analytics"


class ExportBookingsRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = ExportResult

    action: Literal["wcefp_export_bookings"] = "wcefp_export_bookings"
    date_from: str | None = None
    date_to: str | None = None
    status: str | None = None
    event_id: int | None = None


class ExportCalendarRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = ExportResult

    action: Literal["wcefp_export_calendar"] = "wcefp_export_calendar"
    event_id: int | None = None
    date_range: str | None = None


class TrackAnalyticsRequest(ActionRequest):
    action: Literal["wcefp_track_analytics"] = "wcefp_track_analytics"
    event_name: str = Field(min_length=1)
    event_data: str = "{}"


class TranslationsRequest(ActionRequest):
    response_model: ClassVar[type[BaseModel]] = TranslationsResult

    action: Literal["wcefp_get_translations"] = "wcefp_get_translations"
    locale: str = Field(min_length=1)
    strings: list[str] = Field(default_factory=list)


class DashboardRequest(ActionRequest):
    """Shared date window of the analytics dashboard actions."""

    date_range: str = "30days"
    start_date: str | None = None
    end_date: str | None = None


class DashboardDataRequest(DashboardRequest):
    response_model: ClassVar[type[BaseModel]] = DashboardData

    action: Literal["wcefp_get_dashboard_data"] = "wcefp_get_dashboard_data"


class BookingTrendsRequest(DashboardRequest):
    response_model: ClassVar[type[BaseModel]] = BookingTrends

    action: Literal["wcefp_get_booking_trends"] = "wcefp_get_booking_trends"
    period: Literal["daily", "weekly", "monthly"] = "daily"


class RevenueAnalyticsRequest(DashboardRequest):
    response_model: ClassVar[type[BaseModel]] = RevenueAnalytics

    action: Literal["wcefp_get_revenue_analytics"] = "wcefp_get_revenue_analytics"


class EventPerformanceRequest(DashboardRequest):
    response_model: ClassVar[type[BaseModel]] = EventPerformanceList

    action: Literal["wcefp_get_event_performance"] = "wcefp_get_event_performance"
    limit: int = Field(default=10, ge=1)


AjaxRequest = Annotated[
    Union[
        RealtimeConnectRequest,
        RealtimeUpdatesRequest,
        LoadMoreExperiencesRequest,
        GamificationDataRequest,
        AwardPointsRequest,
        LeaderboardRequest,
        VoucherActionRequest,
        VoucherAnalyticsRequest,
        ExportBookingsRequest,
        ExportCalendarRequest,
        TrackAnalyticsRequest,
        TranslationsRequest,
        DashboardDataRequest,
        BookingTrendsRequest,
        RevenueAnalyticsRequest,
        EventPerformanceRequest,
    ],
    Field(discriminator="action"),
]

_REQUEST_ADAPTER: TypeAdapter[Any] = TypeAdapter(AjaxRequest)

ACTION_NAMES: tuple[str, ...] = (
    "wcefp_realtime_connect",
    "wcefp_get_realtime_updates",
    "wcefp_load_more_experiences",
    "wcefp_get_user_gamification_data",
    "wcefp_award_points",
    "wcefp_get_leaderboard",
    "wcefp_voucher_action",
    "wcefp_get_voucher_analytics",
    "wcefp_export_bookings",
    "wcefp_export_calendar",
    "wcefp_track_analytics",
    "wcefp_get_translations",
    "wcefp_get_dashboard_data",
    "wcefp_get_booking_trends",
    "wcefp_get_revenue_analytics",
    "wcefp_get_event_performance",
)


def parse_request(payload: dict[str, Any]) -> ActionRequest:
    """Validate a decoded form payload into its tagged request model."""
    return _REQUEST_ADAPTER.validate_python(payload)
