"""Composition root: wires state, store and runtime components together."""

from __future__ import annotations

import webbrowser
from dataclasses import dataclass
from datetime import date
from typing import Callable

from .config.paths import store_dir
from .config.store import JsonDirectoryBackend, MemoryBackend, PersistentStore
from .core.config import Settings, get_settings
from .core.notifications import LoggingNotificationSink, NotificationSink
from .runtime.background import BackgroundCache
from .runtime.chat import ChatSession
from .runtime.commands import CommandPalette, CommandRegistry
from .runtime.speech import SpeechRecognizer
from .runtime.timer import TimerEngine, TimerRunner
from .services.api import BackgroundImageClient, ChatCompletionClient, HttpClient
from .state.app_state import AppState, SettingsPanel
from .state.widgets import WidgetData


UrlOpener = Callable[[str], object]

WIDGET_COMMANDS: tuple[tuple[str, str, str], ...] = (
    ("toggle-clock", "clock", "Clock"),
    ("toggle-weather", "weather", "Weather"),
    ("toggle-todo", "todo", "Todo"),
    ("toggle-notes", "notes", "Notes"),
    ("toggle-quote", "quote", "Quote"),
    ("toggle-news", "news", "News"),
    ("toggle-quicklinks", "quickLinks", "Quick Links"),
    ("toggle-pomodoro", "pomodoro", "Pomodoro"),
    ("toggle-music", "musicPlayer", "Music Player"),
    ("toggle-mood", "moodTracker", "Mood Tracker"),
)

QUICK_LINK_COMMANDS: tuple[tuple[str, str, str, tuple[str, ...]], ...] = (
    ("open-gmail", "Open Gmail", "https://gmail.com", ("email", "mail", "google")),
    ("open-github", "Open GitHub", "https://github.com", ("code", "repository", "git")),
    ("open-calendar", "Open Google Calendar", "https://calendar.google.com", ("calendar", "schedule", "events")),
)


def _widget_label(state: AppState, widget: str, title: str) -> Callable[[], str]:
    return lambda: f"{'Hide' if state.is_enabled(widget) else 'Show'} {title} Widget"


def register_default_commands(
    registry: CommandRegistry,
    state: AppState,
    *,
    open_url: UrlOpener = webbrowser.open,
) -> CommandRegistry:
    """Register the dashboard catalog: Theme, Widgets, Actions, Quick Links."""
    registry.register(
        "theme-light",
        "Switch to Light Theme",
        "Theme",
        lambda: state.set_theme("light"),
        keywords=("light", "bright", "white"),
    )
    registry.register(
        "theme-dark",
        "Switch to Dark Theme",
        "Theme",
        lambda: state.set_theme("dark"),
        keywords=("dark", "night", "black"),
    )

    for command_id, widget, title in WIDGET_COMMANDS:
        registry.register(
            command_id,
            _widget_label(state, widget, title),
            "Widgets",
            lambda widget=widget: state.toggle_widget(widget),
        )

    registry.register(
        "open-settings",
        "Open Settings",
        "Actions",
        state.open_settings,
        keywords=("settings", "preferences", "config"),
    )
    registry.register(
        "focus-mode",
        "Toggle Focus Mode",
        "Actions",
        state.toggle_focus_mode,
        keywords=("focus", "distraction", "minimal"),
    )
    registry.register(
        "open-ai",
        "Open AI Assistant",
        "Actions",
        state.open_assistant,
        keywords=("ai", "assistant", "chat", "help"),
    )

    for command_id, label, url, keywords in QUICK_LINK_COMMANDS:
        registry.register(command_id, label, "Quick Links", lambda url=url: open_url(url), keywords=keywords)
    return registry


@dataclass(slots=True)
class Dashboard:
    """Every core component of one dashboard page."""

    settings: Settings
    store: PersistentStore
    state: AppState
    widgets: WidgetData
    registry: CommandRegistry
    palette: CommandPalette
    settings_panel: SettingsPanel
    chat: ChatSession
    timer: TimerEngine
    timer_runner: TimerRunner
    background: BackgroundCache
    chat_client: ChatCompletionClient
    background_client: BackgroundImageClient

    async def aclose(self) -> None:
        self.chat.dispose()
        await self.timer_runner.close()
        await self.chat_client.aclose()
        await self.background_client.aclose()


def build_dashboard(
    settings: Settings | None = None,
    *,
    store: PersistentStore | None = None,
    http: HttpClient | None = None,
    recognizer: SpeechRecognizer | None = None,
    notifications: NotificationSink | None = None,
    open_url: UrlOpener = webbrowser.open,
    today: Callable[[], date] = date.today,
    in_memory: bool = False,
) -> Dashboard:
    settings = settings or get_settings()
    if store is None:
        backend = MemoryBackend() if in_memory else JsonDirectoryBackend(store_dir(settings))
        store = PersistentStore(backend)
    notifications = notifications or LoggingNotificationSink()

    state = AppState.load(store, notifications)
    registry = register_default_commands(CommandRegistry(), state, open_url=open_url)

    chat_client = ChatCompletionClient.from_settings(settings, http=http)
    chat = ChatSession(
        chat_client,
        store,
        fallback_reply=settings.chat_fallback_reply,
        recognizer=recognizer,
        notifications=notifications,
    )

    timer = TimerEngine(
        work_seconds=settings.timer_work_seconds,
        break_seconds=settings.timer_break_seconds,
        notifications=notifications,
        pause_on_phase_end=settings.timer_pause_on_phase_end,
    )

    background_client = BackgroundImageClient.from_settings(settings, http=http)
    background = BackgroundCache(
        store,
        background_client.fetch_image_url,
        today=today,
        notifications=notifications,
    )

    return Dashboard(
        settings=settings,
        store=store,
        state=state,
        widgets=WidgetData(store, today=today),
        registry=registry,
        palette=CommandPalette(registry),
        settings_panel=SettingsPanel(state),
        chat=chat,
        timer=timer,
        timer_runner=TimerRunner(timer),
        background=background,
        chat_client=chat_client,
        background_client=background_client,
    )
