"""Locale switching, string lookup and locale-aware date, time and price formatting."""

from __future__ import annotations

import datetime
import re
from typing import Iterable

from babel import Locale
from babel.dates import format_date as babel_format_date, format_time as babel_format_time

from .actions import LocaleInfo, TranslationsRequest
from .errors import FormValidationError
from .logging import get_logger
from .storage import PreferenceStore
from .transport import AjaxTransport

logger = get_logger(__name__)

PREFERRED_LOCALE_KEY = "wcefp_preferred_locale"
DEFAULT_LOCALE = "it_IT"
TWELVE_HOUR_FORMAT = "g:i A"

# Strings every page asks for when the locale changes
COMMON_STRINGS = (
    "Book Now",
    "Check Availability",
    "Select Date",
    "Participants",
    "Total Price",
    "Confirm Booking",
    "Duration",
    "Meeting Point",
    "What's Included",
    "Reviews",
    "Loading...",
    "Cancel Booking",
)

# Widen the short pattern to a full year with two-digit month and day
_NUMERIC_FIELDS = ((re.compile(r"y+"), "y"), (re.compile(r"M+|L+"), "MM"), (re.compile(r"d+"), "dd"))

SUPPORTED_LOCALES: dict[str, LocaleInfo] = {
    "en_US": LocaleInfo(name="English (US)", flag="🇺🇸", currency="USD", date_format="M d, Y", time_format="g:i A"),
    "en_GB": LocaleInfo(name="English (UK)", flag="🇬🇧", currency="GBP"),
    "it_IT": LocaleInfo(name="Italiano", flag="🇮🇹", currency="EUR", decimal_separator=",", thousands_separator="."),
    "es_ES": LocaleInfo(name="Español", flag="🇪🇸", currency="EUR", decimal_separator=",", thousands_separator="."),
    "fr_FR": LocaleInfo(name="Français", flag="🇫🇷", currency="EUR", decimal_separator=",", thousands_separator=" "),
    "de_DE": LocaleInfo(name="Deutsch", flag="🇩🇪", currency="EUR", date_format="d.m.Y", decimal_separator=",", thousands_separator="."),
    "pt_BR": LocaleInfo(name="Português (Brasil)", flag="🇧🇷", currency="BRL", decimal_separator=",", thousands_separator="."),
    "ja": LocaleInfo(name="日本語", flag="🇯🇵", currency="JPY", date_format="Y年m月d日"),
    "ko_KR": LocaleInfo(name="한국어", flag="🇰🇷", currency="KRW", date_format="Y년 m월 d일"),
    "zh_CN": LocaleInfo(name="简体中文", flag="🇨🇳", currency="CNY", date_format="Y年m月d日"),
}


def format_price(amount: float, info: LocaleInfo) -> str:
    """``EUR 1.234,50``; a zero fraction is dropped (``EUR 45``)."""
    integer_part, _, decimal_part = f"{abs(amount):,.2f}".partition(".")
    integer_part = integer_part.replace(",", info.thousands_separator)
    formatted = integer_part if decimal_part == "00" else integer_part + info.decimal_separator + decimal_part
    sign = "-" if amount < 0 else ""
    return f"{info.currency} {sign}{formatted}"


def numeric_date_pattern(locale: str) -> str:
    pattern = Locale.parse(locale).date_formats["short"].pattern
    for field, replacement in _NUMERIC_FIELDS:
        pattern = field.sub(replacement, pattern)
    return pattern


def parse_time(value: str) -> datetime.time | None:
    hour, _, rest = value.partition(":")
    minute = rest.partition(":")[0] or "0"
    try:
        return datetime.time(int(hour), int(minute))
    except ValueError:
        return None


class I18nService:
    """Current locale of a visitor, kept in sync with the server catalog."""

    def __init__(
        self,
        transport: AjaxTransport,
        store: PreferenceStore,
        locale: str = DEFAULT_LOCALE,
        strings: dict[str, dict[str, str]] | None = None,
        supported_locales: dict[str, LocaleInfo] | None = None,
    ) -> None:
        self._transport = transport
        self._store = store
        self.supported_locales = dict(supported_locales if supported_locales is not None else SUPPORTED_LOCALES)
        self.locale = locale if locale in self.supported_locales else DEFAULT_LOCALE
        self.strings = {category: dict(values) for category, values in (strings or {}).items()}
        self.translations: dict[str, str] = {}

    @property
    def locale_info(self) -> LocaleInfo:
        return self.supported_locales[self.locale]

    def restore(self) -> str:
        """Switch to the saved preference when it differs from the current locale."""
        saved = self._store.get(PREFERRED_LOCALE_KEY)
        if saved and saved in self.supported_locales and saved != self.locale:
            self.switch_locale(saved)
        return self.locale

    def switch_locale(self, locale: str, strings: Iterable[str] = COMMON_STRINGS) -> LocaleInfo:
        if locale not in self.supported_locales:
            raise FormValidationError([f"Lingua non supportata: {locale}"])

        # A failed fetch raises and leaves the current locale in place
        result = self._transport.call(TranslationsRequest(locale=locale, strings=list(strings)))
        self.locale = result.locale
        self.translations = dict(result.translations)
        self.supported_locales[result.locale] = result.locale_info
        self._store.set(PREFERRED_LOCALE_KEY, result.locale)
        logger.info("Locale switched to %s", result.locale)
        return result.locale_info

    def get_string(self, key: str, category: str | None = None) -> str:
        if category and self.strings.get(category, {}).get(key):
            return self.strings[category][key]
        for values in self.strings.values():
            if values.get(key):
                return values[key]
        return self.translations.get(key) or key

    def format_date(self, value: datetime.date | str, locale: str | None = None) -> str:
        """Numeric year with two-digit month and day in the locale's order."""
        locale = locale or self.locale
        if locale not in self.supported_locales:
            return str(value)
        if isinstance(value, str):
            try:
                value = datetime.date.fromisoformat(value[:10])
            except ValueError:
                return ""
        return babel_format_date(value, numeric_date_pattern(locale), locale=locale)

    def format_price(self, amount: float, locale: str | None = None) -> str:
        info = self.supported_locales.get(locale or self.locale)
        if info is None:
            return str(amount)
        return format_price(amount, info)

    def format_time(self, value: str, locale: str | None = None) -> str:
        info = self.supported_locales.get(locale or self.locale)
        parsed = parse_time(value)
        if info is None or parsed is None:
            return value
        pattern = "h:mm a" if info.time_format == TWELVE_HOUR_FORMAT else "HH:mm"
        return babel_format_time(parsed, pattern, locale=locale or self.locale)
