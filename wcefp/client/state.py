"""Filter state builders and URL query round-tripping."""

from __future__ import annotations

from dataclasses import replace
from typing import Mapping
from urllib.parse import parse_qsl, urlencode

from .models import FilterState

# Only these filters are mirrored into the page URL
QUERY_FILTERS = ("search", "category", "price")


def build_initial_filters() -> FilterState:
    """Return the cleared filter state (sorted by date, newest first)."""
    return FilterState()


def filters_from_query(query: str | Mapping[str, str]) -> FilterState:
    params = dict(parse_qsl(query.lstrip("?"))) if isinstance(query, str) else dict(query)
    filters = build_initial_filters()
    if params.get("category"):
        filters = replace(filters, category=params["category"])
    if params.get("search"):
        filters = replace(filters, search=params["search"].lower())
    if params.get("price"):
        filters = replace(filters, price=params["price"])
    return filters


def filters_to_query(filters: FilterState) -> dict[str, str]:
    return {name: getattr(filters, name) for name in QUERY_FILTERS if getattr(filters, name)}


def filters_to_query_string(filters: FilterState) -> str:
    return urlencode(filters_to_query(filters))


def has_query_filters(filters: FilterState) -> bool:
    return bool(filters_to_query(filters))
