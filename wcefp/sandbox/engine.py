"""Dispatch of validated admin-ajax requests onto the sandbox store."""

from __future__ import annotations

import json
from typing import Any

from wcefp.client.actions import (
    ActionRequest,
    AwardPointsRequest,
    BookingTrendsRequest,
    DashboardDataRequest,
    EventPerformanceRequest,
    ExportBookingsRequest,
    ExportCalendarRequest,
    GamificationDataRequest,
    LeaderboardRequest,
    LoadMoreExperiencesRequest,
    RealtimeConnectRequest,
    RealtimeUpdatesRequest,
    RevenueAnalyticsRequest,
    TrackAnalyticsRequest,
    TranslationsRequest,
    VoucherActionRequest,
    VoucherAnalyticsRequest,
)
from wcefp.sandbox.store import ActionRejected, SandboxStore


def handle_request(store: SandboxStore, request: ActionRequest) -> Any:
    """Return the ``data`` of a successful reply or raise ActionRejected."""
    if isinstance(request, RealtimeConnectRequest):
        return {"session_id": store.open_session()}
    if isinstance(request, RealtimeUpdatesRequest):
        return {"updates": store.updates_for(request.session_id)}
    if isinstance(request, LoadMoreExperiencesRequest):
        return store.experiences_page(page=request.page, per_page=request.per_page, filters=request.filters)
    if isinstance(request, GamificationDataRequest):
        return store.gamification_data()
    if isinstance(request, AwardPointsRequest):
        return store.award_points(
            points=request.points,
            action_type=request.action_type,
            action_data=_decode_action_data(request.action_data),
        )
    if isinstance(request, LeaderboardRequest):
        return store.leaderboard(request.period)
    if isinstance(request, VoucherActionRequest):
        return store.voucher_action(action_type=request.action_type, code=request.voucher_code)
    if isinstance(request, VoucherAnalyticsRequest):
        return store.voucher_analytics()
    if isinstance(request, ExportBookingsRequest):
        return store.export_bookings(
            date_from=request.date_from,
            date_to=request.date_to,
            status=request.status,
            event_id=request.event_id,
        )
    if isinstance(request, ExportCalendarRequest):
        return store.export_calendar(event_id=request.event_id, date_range=request.date_range)
    if isinstance(request, TrackAnalyticsRequest):
        store.track(event_name=request.event_name, event_data=request.event_data)
        return {"message": "tracked"}
    if isinstance(request, TranslationsRequest):
        return store.translations(locale=request.locale, strings=request.strings)
    if isinstance(request, DashboardDataRequest):
        return store.dashboard_data(request.date_range, request.start_date, request.end_date)
    if isinstance(request, BookingTrendsRequest):
        return store.booking_trends(request.date_range, request.start_date, request.end_date, period=request.period)
    if isinstance(request, RevenueAnalyticsRequest):
        return store.revenue_analytics(request.date_range, request.start_date, request.end_date)
    if isinstance(request, EventPerformanceRequest):
        return store.event_performance(request.date_range, request.start_date, request.end_date, limit=request.limit)
    raise ActionRejected(f"Unhandled action {type(request).__name__}")


def _decode_action_data(raw: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw or "{}")
    except json.JSONDecodeError as exc:
        raise ActionRejected("action_data is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ActionRejected("action_data must be a JSON object")
    return payload
