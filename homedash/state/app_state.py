"""Shared state owned by the dashboard composition root."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Literal, get_args

from ..config.store import PersistentStore
from ..core.notifications import Notification, NotificationSink


Theme = Literal["light", "dark"]

THEME_KEY = "theme"
ENABLED_WIDGETS_KEY = "enabledWidgets"

WIDGET_LABELS: dict[str, str] = {
    "clock": "Clock & Date",
    "weather": "Weather",
    "todo": "To-Do List",
    "notes": "Sticky Notes",
    "quote": "Quote of the Day",
    "news": "Latest News",
    "quickLinks": "Quick Links",
    "pomodoro": "Pomodoro Timer",
    "musicPlayer": "Music Player",
    "moodTracker": "Mood Tracker",
    "bookmarks": "Bookmarks",
}

DEFAULT_ENABLED_WIDGETS: dict[str, bool] = {name: True for name in WIDGET_LABELS}

logger = logging.getLogger("homedash.state")

StateListener = Callable[["AppState"], None]


@dataclass(slots=True)
class AppState:
    """Theme, widget enablement and open surfaces.

    Theme and enablement are persisted on every change; focus mode and the
    open flags of the settings panel and assistant are session-only.
    """

    store: PersistentStore
    notifications: NotificationSink | None = None
    theme: Theme = "dark"
    enabled_widgets: dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_ENABLED_WIDGETS))
    focus_mode: bool = False
    settings_open: bool = False
    assistant_open: bool = False
    _listeners: list[StateListener] = field(default_factory=list, repr=False)

    @classmethod
    def load(cls, store: PersistentStore, notifications: NotificationSink | None = None) -> "AppState":
        """Read theme and enablement from the store, seeding defaults."""
        theme = store.get(THEME_KEY, "dark", schema=Theme)
        stored = store.get(ENABLED_WIDGETS_KEY, dict(DEFAULT_ENABLED_WIDGETS), schema=dict[str, bool])
        enabled = dict(DEFAULT_ENABLED_WIDGETS)
        enabled.update({name: value for name, value in stored.items() if name in enabled})
        return cls(store=store, notifications=notifications, theme=theme, enabled_widgets=enabled)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------ #
    # Theme
    # ------------------------------------------------------------------ #
    def set_theme(self, theme: str) -> None:
        if theme not in get_args(Theme):
            raise ValueError(f"Unknown theme: {theme!r}")
        if not self._persist(THEME_KEY, theme):
            return
        self.theme = theme  # type: ignore[assignment]
        self._changed()

    def toggle_theme(self) -> None:
        self.set_theme("light" if self.theme == "dark" else "dark")

    # ------------------------------------------------------------------ #
    # Widgets
    # ------------------------------------------------------------------ #
    def is_enabled(self, widget: str) -> bool:
        return bool(self.enabled_widgets.get(widget, False))

    def set_widget(self, widget: str, enabled: bool) -> None:
        if widget not in WIDGET_LABELS:
            raise KeyError(widget)
        updated = {**self.enabled_widgets, widget: bool(enabled)}
        if not self._persist(ENABLED_WIDGETS_KEY, updated):
            return
        self.enabled_widgets = updated
        self._changed()

    def toggle_widget(self, widget: str) -> None:
        self.set_widget(widget, not self.is_enabled(widget))

    def visible_widgets(self) -> list[str]:
        return [name for name in WIDGET_LABELS if self.enabled_widgets.get(name)]

    # ------------------------------------------------------------------ #
    # Surfaces
    # ------------------------------------------------------------------ #
    def toggle_focus_mode(self) -> None:
        self.focus_mode = not self.focus_mode
        self._changed()

    def open_settings(self) -> None:
        self.settings_open = True
        self._changed()

    def close_settings(self) -> None:
        self.settings_open = False
        self._changed()

    def open_assistant(self) -> None:
        self.assistant_open = True
        self._changed()

    def close_assistant(self) -> None:
        self.assistant_open = False
        self._changed()

    def _persist(self, key: str, value: object) -> bool:
        """Write before mutating; a failed write leaves the previous state in place."""
        try:
            self.store.set(key, value)
        except OSError as exc:
            logger.warning("Could not save %s: %s", key, exc)
            if self.notifications is not None:
                self.notifications.notify(
                    Notification(
                        title="Settings not saved",
                        message="Your change could not be saved and was undone.",
                        level="error",
                    )
                )
            return False
        return True

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("App state listener failed")


@dataclass(slots=True, frozen=True)
class WidgetRow:
    name: str
    label: str
    enabled: bool


SHORTCUTS: tuple[tuple[str, str], ...] = (
    ("Command Palette", "Ctrl+K"),
    ("Command Palette (outside inputs)", "/"),
    ("Close Palette", "Esc"),
)


class SettingsPanel:
    """View model of the settings surface; reads and mutates ``AppState`` by reference."""

    def __init__(self, state: AppState) -> None:
        self.state = state

    @property
    def theme(self) -> str:
        return self.state.theme

    def rows(self) -> list[WidgetRow]:
        return [
            WidgetRow(name=name, label=label, enabled=self.state.is_enabled(name))
            for name, label in WIDGET_LABELS.items()
        ]

    def choose_theme(self, theme: str) -> None:
        self.state.set_theme(theme)

    def toggle(self, widget: str) -> None:
        self.state.toggle_widget(widget)

    def shortcuts(self) -> tuple[tuple[str, str], ...]:
        return SHORTCUTS

    def close(self) -> None:
        self.state.close_settings()
