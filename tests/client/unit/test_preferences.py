import pytest

from wcefp.client.preferences import (
    THEME_KEY,
    TEXT_SIZE_MAX,
    TEXT_SIZE_MIN,
    AccessibilityPreferences,
    ThemePreference,
    change_text_size,
    load_accessibility,
    toggle_setting,
)
from wcefp.client.storage import InMemoryPreferenceStore


def test_theme_resolution_order() -> None:
    store = InMemoryPreferenceStore()
    theme = ThemePreference(store, user_theme="dark", system_theme="light")

    assert theme.resolve() == "dark"
    store.set(THEME_KEY, "light")
    assert theme.resolve() == "light"
    assert theme.resolve(url_theme="dark") == "dark"
    assert theme.resolve(url_theme="purple") == "light"


def test_toggle_persists_choice() -> None:
    store = InMemoryPreferenceStore()
    theme = ThemePreference(store)

    assert theme.toggle() == "dark"
    assert store.get(THEME_KEY) == "dark"
    assert theme.toggle() == "light"


def test_set_theme_rejects_unknown_value() -> None:
    with pytest.raises(ValueError):
        ThemePreference(InMemoryPreferenceStore()).set_theme("sepia")


def test_system_change_only_applies_without_explicit_choice() -> None:
    store = InMemoryPreferenceStore()
    theme = ThemePreference(store)

    assert theme.system_changed(prefers_dark=True) == "dark"
    theme.set_theme("light")
    assert theme.system_changed(prefers_dark=True) is None
    theme.clear()
    assert theme.resolve() == "dark"


def test_accessibility_toggles_are_persisted() -> None:
    store = InMemoryPreferenceStore()
    prefs = load_accessibility(store)
    assert prefs == AccessibilityPreferences()

    prefs = toggle_setting(store, prefs, "high_contrast")

    assert prefs.high_contrast
    assert store.get("wcefp_high_contrast") == "true"
    assert load_accessibility(store).high_contrast


def test_unknown_accessibility_setting_is_rejected() -> None:
    store = InMemoryPreferenceStore()
    with pytest.raises(ValueError):
        toggle_setting(store, AccessibilityPreferences(), "text_size")


def test_text_size_stays_within_bounds() -> None:
    store = InMemoryPreferenceStore()
    prefs = AccessibilityPreferences(text_size=TEXT_SIZE_MAX)

    assert change_text_size(store, prefs, "increase").text_size == TEXT_SIZE_MAX
    assert store.get("wcefp_text_size") is None

    smaller = change_text_size(store, AccessibilityPreferences(text_size=TEXT_SIZE_MIN + 10), "decrease")
    assert smaller.text_size == TEXT_SIZE_MIN
    assert change_text_size(store, smaller, "decrease").text_size == TEXT_SIZE_MIN
    assert load_accessibility(store).text_size == TEXT_SIZE_MIN


def test_invalid_stored_text_size_falls_back_to_default() -> None:
    store = InMemoryPreferenceStore()
    store.set("wcefp_text_size", "huge")

    assert load_accessibility(store).text_size == 100
