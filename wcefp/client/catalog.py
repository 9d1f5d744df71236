"""Client-side filtering, sorting and pagination of the experiences catalog."""

from __future__ import annotations

from dataclasses import replace
import datetime
import re
import threading
import unicodedata
from typing import Any, Iterable, Mapping

from .actions import LoadMoreExperiencesRequest, LoadMoreResult
from .analytics import EventTracker
from .errors import ServerError, TransportError
from .logging import get_logger
from .models import CatalogRender, ExperienceCard, FilterState
from .scheduling import Scheduler, TimerHandle
from .state import build_initial_filters, filters_to_query
from .transport import AjaxTransport

logger = get_logger(__name__)

SORT_FIELDS = ("price", "rating", "popularity", "title", "date")
FILTER_FIELDS = ("search", "category", "location", "duration", "price", "rating", "date")
SEARCH_DEBOUNCE = 0.3

EMPTY_MESSAGE = "Nessuna esperienza trovata"

# Tracking parameter name per filter, as the analytics reports expect them
_TRACKED_FILTER_KEYS = {
    "category": "category",
    "location": "location",
    "duration": "duration",
    "price": "price_range",
    "rating": "rating",
    "date": "date",
}

_PRICE_NOISE = re.compile(r"[^\d.]")


def parse_price(text: Any) -> float:
    """Extract a price the way the catalog reads it from card markup."""
    if isinstance(text, (int, float)):
        return float(text)
    digits = _PRICE_NOISE.sub("", str(text or ""))
    try:
        return float(digits)
    except ValueError:
        return 0.0


def card_from_mapping(payload: Mapping[str, Any]) -> ExperienceCard:
    raw_date = payload.get("date")
    card_date: datetime.date | None = None
    if isinstance(raw_date, datetime.date):
        card_date = raw_date
    elif isinstance(raw_date, str) and raw_date:
        card_date = datetime.date.fromisoformat(raw_date[:10])

    rating = payload.get("rating")
    popularity = payload.get("popularity")
    return ExperienceCard(
        experience_id=payload.get("experience_id", payload.get("id", "")),
        title=str(payload.get("title", "")),
        category=str(payload.get("category") or ""),
        price=parse_price(payload.get("price", 0)),
        rating=float(rating) if rating not in (None, "") else None,
        popularity=int(popularity) if popularity not in (None, "") else None,
        date=card_date,
        location=str(payload.get("location") or ""),
        duration=str(payload.get("duration") or ""),
    )


def matches_search(card: ExperienceCard, search: str) -> bool:
    if not search:
        return True
    return search.lower() in card.title.lower()


def matches_category(card: ExperienceCard, category: str) -> bool:
    if not category:
        return True
    return card.category == category


def matches_price(price: float, price_range: str) -> bool:
    if not price_range:
        return True
    if price_range == "0-50":
        return 0 <= price <= 50
    if price_range == "50-100":
        return 50 < price <= 100
    if price_range == "100-200":
        return 100 < price <= 200
    if price_range == "200+":
        return price > 200
    return True


def apply_filters(cards: Iterable[ExperienceCard], filters: FilterState) -> list[ExperienceCard]:
    """Return the cards matching search AND category AND price, in input order."""
    return [
        card
        for card in cards
        if matches_search(card, filters.search)
        and matches_category(card, filters.category)
        and matches_price(card.price, filters.price)
    ]


def collation_key(text: str) -> tuple[str, str]:
    """Accent-insensitive primary key with the casefolded text as tie breaker."""
    folded = text.casefold()
    decomposed = unicodedata.normalize("NFKD", folded)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return base, folded


def _sort_key(sort_by: str):
    if sort_by == "price":
        return lambda card: card.price or 0
    if sort_by == "rating":
        return lambda card: card.rating or 0
    if sort_by == "popularity":
        return lambda card: card.popularity or 0
    if sort_by == "title":
        return lambda card: collation_key(card.title or "")
    return lambda card: card.date.toordinal() if card.date is not None else 0


def sort_cards(cards: Iterable[ExperienceCard], sort_by: str = "date", sort_dir: str = "desc") -> list[ExperienceCard]:
    """Stable sort; equal keys keep their relative order in both directions."""
    return sorted(cards, key=_sort_key(sort_by), reverse=sort_dir != "asc")


def parse_sort_value(value: str) -> tuple[str, str]:
    sort_by, _, sort_dir = value.partition("-")
    if sort_by not in SORT_FIELDS:
        sort_by = "date"
    return sort_by, "asc" if sort_dir == "asc" else "desc"


def result_count_text(count: int) -> str:
    if count == 1:
        return f"{count} esperienza trovata"
    return f"{count} esperienze trovate"


class LoadMorePager:
    """Server-delegated "load more" pagination.

    ``invalidate`` marks every reply still in flight as stale; a stale
    reply is dropped and its page increment undone unless ``reset``
    already moved the page.
    """

    def __init__(self, transport: AjaxTransport, per_page: int = 12) -> None:
        self._transport = transport
        self.per_page = per_page
        self.current_page = 1
        self.is_loading = False
        self.has_more = True
        self.fragments: list[str] = []
        self._generation = 0
        self._lock = threading.Lock()

    def invalidate(self) -> None:
        with self._lock:
            self._generation += 1

    def reset(self) -> None:
        with self._lock:
            self._generation += 1
            self.current_page = 1
            self.has_more = True
            self.fragments = []

    def load_more(self, filters: FilterState) -> LoadMoreResult | None:
        with self._lock:
            if self.is_loading or not self.has_more:
                return None
            self.is_loading = True
            self.current_page += 1
            page = self.current_page
            generation = self._generation

        request = LoadMoreExperiencesRequest(
            page=page,
            per_page=self.per_page,
            filters=filters.as_request_filters(),
        )
        try:
            result = self._transport.call(request)
        except ServerError as exc:
            logger.error("Failed to load more experiences: %s", exc.message)
            return None
        except TransportError:
            logger.error("AJAX error loading experiences page %d", page)
            with self._lock:
                self._revert_page(page)
            raise
        finally:
            with self._lock:
                self.is_loading = False

        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale experiences page %d", page)
                self._revert_page(page)
                return None
            self.fragments.append(result.experiences)
            if not result.has_more:
                self.has_more = False
        return result

    def _revert_page(self, page: int) -> None:
        if self.current_page == page:
            self.current_page = page - 1


class CatalogView:
    """Filtered view over an immutable snapshot of the rendered cards."""

    def __init__(
        self,
        cards: Iterable[ExperienceCard],
        filters: FilterState | None = None,
        tracker: EventTracker | None = None,
        pager: LoadMorePager | None = None,
        scheduler: Scheduler | None = None,
        search_debounce: float = SEARCH_DEBOUNCE,
    ) -> None:
        self._original: tuple[ExperienceCard, ...] = tuple(cards)
        self.filters = filters if filters is not None else build_initial_filters()
        self.filtered: list[ExperienceCard] = list(self._original)
        self.tracker = tracker
        self.pager = pager
        self._scheduler = scheduler
        self.search_debounce = search_debounce
        self._debounce_timer: TimerHandle | None = None
        self._sort_selected = False
        self._lock = threading.RLock()

        if filters is not None and (filters.search or filters.category or filters.price):
            self.apply_filters()

    @property
    def original_cards(self) -> tuple[ExperienceCard, ...]:
        return self._original

    def apply_filters(self) -> CatalogRender:
        with self._lock:
            filtered = apply_filters(self._original, self.filters)
            if self._sort_selected:
                filtered = sort_cards(filtered, self.filters.sort_by, self.filters.sort_dir)
            self.filtered = filtered
            if self.pager is not None:
                self.pager.invalidate()
            self._track_filter_usage()
            return self.render()

    def apply_sorting(self) -> CatalogRender:
        with self._lock:
            self.filtered = sort_cards(self.filtered, self.filters.sort_by, self.filters.sort_dir)
            return self.render()

    def set_filter(self, name: str, value: str) -> CatalogRender:
        if name not in FILTER_FIELDS:
            raise ValueError(f"Unknown filter {name!r}")
        if name == "search":
            value = value.lower()
        with self._lock:
            self.filters = replace(self.filters, **{name: value})
            render = self.apply_filters()
        if name == "search":
            self._track("experience_search", {"search_term": value})
        else:
            self._track(f"experience_filter_{name}", {_TRACKED_FILTER_KEYS[name]: value})
        return render

    def search(self, term: str) -> None:
        """Debounced search: only the last term typed within the window is applied."""
        with self._lock:
            if self._debounce_timer is not None:
                self._debounce_timer.cancel()
                self._debounce_timer = None
            if self._scheduler is None:
                self.set_filter("search", term)
                return
            self._debounce_timer = self._scheduler.call_later(self.search_debounce, lambda: self._run_search(term))

    def _run_search(self, term: str) -> None:
        with self._lock:
            self._debounce_timer = None
            self.set_filter("search", term)

    def set_sort(self, value: str) -> CatalogRender:
        sort_by, sort_dir = parse_sort_value(value)
        with self._lock:
            self.filters = replace(self.filters, sort_by=sort_by, sort_dir=sort_dir)
            self._sort_selected = True
            render = self.apply_sorting()
        self._track("experience_sort", {"sort_by": sort_by, "sort_direction": sort_dir})
        return render

    def clear_all_filters(self) -> CatalogRender:
        with self._lock:
            self.filters = build_initial_filters()
            self._sort_selected = False
            self.filtered = list(self._original)
            if self.pager is not None:
                self.pager.reset()
            render = self.render()
        self._track("filters_cleared", {})
        return render

    def render(self) -> CatalogRender:
        cards = tuple(self.filtered)
        if not cards:
            return CatalogRender(
                cards=cards,
                is_empty=True,
                result_count_text=result_count_text(0),
                empty_message=EMPTY_MESSAGE,
                show_clear_filters=True,
            )
        return CatalogRender(cards=cards, is_empty=False, result_count_text=result_count_text(len(cards)))

    def query_params(self) -> dict[str, str]:
        return filters_to_query(self.filters)

    def load_more(self) -> LoadMoreResult | None:
        if self.pager is None:
            raise RuntimeError("CatalogView has no pager configured")
        result = self.pager.load_more(self.filters)
        if result is not None:
            self._track("experience_load_more", {"page": self.pager.current_page, "results_count": result.count})
        return result

    def track_card_click(self, card: ExperienceCard) -> None:
        self._track(
            "experience_card_click",
            {
                "experience_id": card.experience_id,
                "experience_title": card.title,
                "position": self._position(card),
            },
        )

    def _position(self, card: ExperienceCard) -> int:
        try:
            return self.filtered.index(card)
        except ValueError:
            return -1

    def _track_filter_usage(self) -> None:
        active = [name for name in ("search", "category", "price") if getattr(self.filters, name)]
        self._track(
            "catalog_filtered",
            {
                "active_filters": active,
                "result_count": len(self.filtered),
                "search_term": self.filters.search,
                "selected_category": self.filters.category,
                "selected_price_range": self.filters.price,
            },
        )

    def _track(self, event_name: str, data: dict[str, Any]) -> None:
        if self.tracker is not None:
            self.tracker.track(event_name, data)
