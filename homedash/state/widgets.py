"""Typed records and default seeds for the widgets' persisted collections."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Callable, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from ..config.store import PersistentStore


TODOS_KEY = "todos"
BOOKMARKS_KEY = "customBookmarks"
QUICK_LINKS_KEY = "quickLinks"
TRACKS_KEY = "musicPlayerTracks"
NOTES_KEY = "stickyNotes"
MOODS_KEY = "moodTracker"

MOOD_EMOJIS: dict[int, tuple[str, str]] = {
    1: ("😞", "Sad"),
    2: ("😕", "Disappointed"),
    3: ("😐", "Neutral"),
    4: ("😊", "Happy"),
    5: ("😄", "Great"),
}


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_url(url: str) -> str:
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url


def favicon_url(url: str) -> str:
    host = urlsplit(url).hostname or "example.com"
    return f"https://www.google.com/s2/favicons?domain={host}&sz=32"


class TodoItem(BaseModel):
    id: str = Field(default_factory=_new_id)
    text: str
    completed: bool = False
    created_at: datetime = Field(default_factory=_now, alias="createdAt")

    model_config = {"populate_by_name": True}


class Bookmark(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    url: str
    favicon: Optional[str] = None


class QuickLink(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    url: str
    icon: str = "🔗"


class Track(BaseModel):
    id: int
    title: str
    artist: str
    url: str


class MoodEntry(BaseModel):
    date: datetime
    mood: int = Field(ge=1, le=5)
    emoji: str
    note: Optional[str] = None


DEFAULT_BOOKMARKS: list[Bookmark] = [
    Bookmark(id="1", title="Google", url="https://google.com", favicon="https://www.google.com/favicon.ico"),
    Bookmark(id="2", title="GitHub", url="https://github.com", favicon="https://github.com/favicon.ico"),
    Bookmark(id="3", title="YouTube", url="https://youtube.com", favicon="https://www.youtube.com/favicon.ico"),
]

DEFAULT_QUICK_LINKS: list[QuickLink] = [
    QuickLink(id="1", name="Google", url="https://google.com", icon="🔍"),
    QuickLink(id="2", name="GitHub", url="https://github.com", icon="💻"),
    QuickLink(id="3", name="YouTube", url="https://youtube.com", icon="📺"),
    QuickLink(id="4", name="Twitter", url="https://twitter.com", icon="🐦"),
]

DEFAULT_TRACKS: list[Track] = [
    Track(id=1, title="Chill Vibes", artist="Lofi Artist", url="https://www.soundjay.com/misc/sounds/coffee-shop-ambience.mp3"),
    Track(id=2, title="Focus Flow", artist="Study Beats", url="https://www.soundjay.com/misc/sounds/rain-on-tent.mp3"),
    Track(id=3, title="Peaceful Moments", artist="Ambient Master", url="https://www.soundjay.com/misc/sounds/forest-birds.mp3"),
]


class WidgetData:
    """Read/write access to every widget namespace through one store."""

    def __init__(self, store: PersistentStore, *, today: Callable[[], date] = date.today) -> None:
        self.store = store
        self._today = today

    # -- todos --------------------------------------------------------- #
    def todos(self) -> list[TodoItem]:
        return self.store.get(TODOS_KEY, [], schema=list[TodoItem])

    def add_todo(self, text: str) -> Optional[TodoItem]:
        text = text.strip()
        if not text:
            return None
        item = TodoItem(text=text)
        self.store.set(TODOS_KEY, [item, *self.todos()])
        return item

    def toggle_todo(self, todo_id: str) -> None:
        items = [
            item.model_copy(update={"completed": not item.completed}) if item.id == todo_id else item
            for item in self.todos()
        ]
        self.store.set(TODOS_KEY, items)

    def delete_todo(self, todo_id: str) -> None:
        self.store.set(TODOS_KEY, [item for item in self.todos() if item.id != todo_id])

    # -- bookmarks ----------------------------------------------------- #
    def bookmarks(self) -> list[Bookmark]:
        defaults = [item.model_copy() for item in DEFAULT_BOOKMARKS]
        return self.store.get(BOOKMARKS_KEY, defaults, schema=list[Bookmark])

    def add_bookmark(self, title: str, url: str) -> Bookmark:
        if not title.strip() or not url.strip():
            raise ValueError("Please fill in both title and URL")
        url = normalize_url(url)
        bookmark = Bookmark(title=title.strip(), url=url, favicon=favicon_url(url))
        self.store.set(BOOKMARKS_KEY, [*self.bookmarks(), bookmark])
        return bookmark

    def remove_bookmark(self, bookmark_id: str) -> None:
        self.store.set(BOOKMARKS_KEY, [b for b in self.bookmarks() if b.id != bookmark_id])

    # -- quick links --------------------------------------------------- #
    def quick_links(self) -> list[QuickLink]:
        defaults = [item.model_copy() for item in DEFAULT_QUICK_LINKS]
        return self.store.get(QUICK_LINKS_KEY, defaults, schema=list[QuickLink])

    def add_quick_link(self, name: str, url: str, icon: str = "") -> Optional[QuickLink]:
        if not name.strip() or not url.strip():
            return None
        link = QuickLink(name=name.strip(), url=normalize_url(url), icon=icon or "🔗")
        self.store.set(QUICK_LINKS_KEY, [*self.quick_links(), link])
        return link

    def remove_quick_link(self, link_id: str) -> None:
        self.store.set(QUICK_LINKS_KEY, [link for link in self.quick_links() if link.id != link_id])

    # -- music --------------------------------------------------------- #
    def tracks(self) -> list[Track]:
        defaults = [item.model_copy() for item in DEFAULT_TRACKS]
        return self.store.get(TRACKS_KEY, defaults, schema=list[Track])

    # -- notes --------------------------------------------------------- #
    def notes(self) -> str:
        return self.store.get(NOTES_KEY, "", schema=str, seed=False)

    def save_notes(self, text: str) -> None:
        self.store.set(NOTES_KEY, text)

    # -- mood ---------------------------------------------------------- #
    def moods(self) -> list[MoodEntry]:
        return self.store.get(MOODS_KEY, [], schema=list[MoodEntry], seed=False)

    def today_mood(self) -> Optional[MoodEntry]:
        today = self._today()
        return next((entry for entry in self.moods() if entry.date.date() == today), None)

    def record_mood(self, mood: int, note: str | None = None) -> MoodEntry:
        """Replace today's entry (if any) and put the new one first."""
        if mood not in MOOD_EMOJIS:
            raise ValueError(f"Mood must be between 1 and 5, got {mood}")
        today = self._today()
        now = datetime.now(timezone.utc)
        stamp = datetime.combine(today, now.time(), tzinfo=timezone.utc)
        entry = MoodEntry(date=stamp, mood=mood, emoji=MOOD_EMOJIS[mood][0], note=note)
        others = [item for item in self.moods() if item.date.date() != today]
        self.store.set(MOODS_KEY, [entry, *others])
        return entry

    def average_mood(self) -> float:
        entries = self.moods()
        if not entries:
            return 0.0
        return round(sum(entry.mood for entry in entries) / len(entries), 1)

    def recent_moods(self, limit: int = 7) -> list[MoodEntry]:
        return self.moods()[:limit]
