"""Python client toolkit for the WCEventsFP admin-ajax endpoints."""

from .analytics import EventTracker, ServerSink
from .availability import AvailabilityBoard, classify_availability
from .catalog import CatalogView, LoadMorePager, apply_filters, sort_cards
from .config import ClientSettings, load_settings
from .dashboard import DashboardService, growth_rate
from .errors import FormValidationError, ServerError, SessionExpiredError, TransportError, WcefpError
from .events import EventEmitter
from .exports import ExportFile, ExportService
from .gamification import GamificationService, estimate_points_for_action, progress_to_next_level
from .i18n import I18nService
from .models import BookingSelection, CatalogRender, ExperienceCard, FilterState, GamificationSnapshot, SessionHandle
from .realtime import ConnectionState, RealtimeClient
from .scheduling import Scheduler, ThreadingScheduler
from .state import build_initial_filters, filters_from_query, filters_to_query
from .storage import InMemoryPreferenceStore, JsonFilePreferenceStore, PreferenceStore, create_store
from .transport import AjaxTransport, HttpAjaxTransport
from .validation import ensure_valid, validate_booking_selection
from .vouchers import VoucherManager, VoucherStatus

__all__ = [
    "AjaxTransport",
    "apply_filters",
    "AvailabilityBoard",
    "BookingSelection",
    "build_initial_filters",
    "CatalogRender",
    "CatalogView",
    "classify_availability",
    "ClientSettings",
    "ConnectionState",
    "create_store",
    "DashboardService",
    "ensure_valid",
    "estimate_points_for_action",
    "EventEmitter",
    "EventTracker",
    "ExperienceCard",
    "ExportFile",
    "ExportService",
    "filters_from_query",
    "filters_to_query",
    "FilterState",
    "FormValidationError",
    "GamificationService",
    "GamificationSnapshot",
    "growth_rate",
    "HttpAjaxTransport",
    "I18nService",
    "InMemoryPreferenceStore",
    "JsonFilePreferenceStore",
    "load_settings",
    "LoadMorePager",
    "PreferenceStore",
    "progress_to_next_level",
    "RealtimeClient",
    "Scheduler",
    "ServerError",
    "ServerSink",
    "SessionExpiredError",
    "SessionHandle",
    "sort_cards",
    "ThreadingScheduler",
    "TransportError",
    "validate_booking_selection",
    "VoucherManager",
    "VoucherStatus",
    "WcefpError",
]
