"""Theme and accessibility preferences persisted in a PreferenceStore."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .logging import get_logger
from .storage import PreferenceStore

logger = get_logger(__name__)

THEME_KEY = "wcefp-theme"
THEMES = ("light", "dark")

TEXT_SIZE_DEFAULT = 100
TEXT_SIZE_MIN = 80
TEXT_SIZE_MAX = 150
TEXT_SIZE_STEP = 10

ACCESSIBILITY_TOGGLES = ("high_contrast", "focus_mode", "reduced_motion")


class ThemePreference:
    """Resolves the active theme: URL parameter, stored choice, user meta, system."""

    def __init__(self, store: PreferenceStore, user_theme: str | None = None, system_theme: str = "light") -> None:
        self._store = store
        self.user_theme = user_theme
        self.system_theme = system_theme if system_theme in THEMES else "light"

    def resolve(self, url_theme: str | None = None) -> str:
        if url_theme in THEMES:
            return url_theme
        saved = self._store.get(THEME_KEY)
        if saved in THEMES:
            return saved
        if self.user_theme in THEMES:
            return self.user_theme
        return self.system_theme

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme {theme!r}")
        self._store.set(THEME_KEY, theme)

    def toggle(self) -> str:
        theme = "light" if self.resolve() == "dark" else "dark"
        self.set_theme(theme)
        return theme

    def clear(self) -> None:
        self._store.remove(THEME_KEY)

    def system_changed(self, prefers_dark: bool) -> str | None:
        """Follow the system only while the user has no explicit choice."""
        self.system_theme = "dark" if prefers_dark else "light"
        if self._store.get(THEME_KEY) is not None:
            return None
        return self.system_theme


@dataclass(frozen=True)
class AccessibilityPreferences:
    high_contrast: bool = False
    text_size: int = TEXT_SIZE_DEFAULT
    focus_mode: bool = False
    reduced_motion: bool = False


def _storage_key(setting: str) -> str:
    return f"wcefp_{setting}"


def load_accessibility(store: PreferenceStore) -> AccessibilityPreferences:
    raw_size = store.get(_storage_key("text_size"))
    try:
        text_size = int(raw_size) if raw_size else TEXT_SIZE_DEFAULT
    except ValueError:
        logger.warning("Ignoring invalid stored text size %r", raw_size)
        text_size = TEXT_SIZE_DEFAULT
    return AccessibilityPreferences(
        high_contrast=store.get(_storage_key("high_contrast")) == "true",
        text_size=text_size or TEXT_SIZE_DEFAULT,
        focus_mode=store.get(_storage_key("focus_mode")) == "true",
        reduced_motion=store.get(_storage_key("reduced_motion")) == "true",
    )


def toggle_setting(store: PreferenceStore, preferences: AccessibilityPreferences, setting: str) -> AccessibilityPreferences:
    if setting not in ACCESSIBILITY_TOGGLES:
        raise ValueError(f"Unknown accessibility setting {setting!r}")
    enabled = not getattr(preferences, setting)
    store.set(_storage_key(setting), "true" if enabled else "false")
    logger.info("%s %s", setting, "enabled" if enabled else "disabled")
    return replace(preferences, **{setting: enabled})


def change_text_size(store: PreferenceStore, preferences: AccessibilityPreferences, action: str) -> AccessibilityPreferences:
    size = preferences.text_size
    if action == "increase" and size < TEXT_SIZE_MAX:
        size += TEXT_SIZE_STEP
    elif action == "decrease" and size > TEXT_SIZE_MIN:
        size -= TEXT_SIZE_STEP

    if size == preferences.text_size:
        return preferences
    store.set(_storage_key("text_size"), str(size))
    logger.info("Text size changed to %d%%", size)
    return replace(preferences, text_size=size)
