from __future__ import annotations

import json
from datetime import date

from homedash.config.store import MemoryBackend, PersistentStore
from homedash.state.widgets import DEFAULT_QUICK_LINKS, WidgetData, favicon_url, normalize_url


def _data(backend: MemoryBackend | None = None, today: date = date(2026, 10, 19)) -> WidgetData:
    return WidgetData(PersistentStore(backend or MemoryBackend()), today=lambda: today)


def test_todos_newest_first_toggle_and_delete() -> None:
    data = _data()
    first = data.add_todo("buy milk")
    second = data.add_todo("  write report ")
    assert data.add_todo("   ") is None
    assert [t.text for t in data.todos()] == ["write report", "buy milk"]
    data.toggle_todo(first.id)
    assert next(t for t in data.todos() if t.id == first.id).completed is True
    data.delete_todo(second.id)
    assert [t.id for t in data.todos()] == [first.id]


def test_todos_accept_browser_field_names() -> None:
    backend = MemoryBackend(
        {"todos": json.dumps([{"id": "1", "text": "x", "completed": False, "createdAt": "2026-10-19T08:00:00Z"}])}
    )
    assert _data(backend).todos()[0].text == "x"


def test_quick_links_default_and_add() -> None:
    data = _data()
    assert [link.name for link in data.quick_links()] == [link.name for link in DEFAULT_QUICK_LINKS]
    link = data.add_quick_link("Docs", "docs.python.org")
    assert link is not None and link.url == "https://docs.python.org" and link.icon == "🔗"
    data.remove_quick_link(link.id)
    assert len(data.quick_links()) == len(DEFAULT_QUICK_LINKS)


def test_malformed_bookmarks_fall_back_to_defaults() -> None:
    backend = MemoryBackend({"customBookmarks": json.dumps([{"title": "no url"}])})
    titles = [b.title for b in _data(backend).bookmarks()]
    assert titles == ["Google", "GitHub", "YouTube"]


def test_add_bookmark_normalizes_url() -> None:
    bookmark = _data().add_bookmark("Python", "python.org")
    assert bookmark.url == "https://python.org"
    assert bookmark.favicon == "https://www.google.com/s2/favicons?domain=python.org&sz=32"


def test_url_helpers() -> None:
    assert normalize_url("http://a.b") == "http://a.b"
    assert favicon_url("not a url") == "https://www.google.com/s2/favicons?domain=example.com&sz=32"


def test_notes_are_raw_strings() -> None:
    data = _data()
    assert data.notes() == ""
    data.save_notes("remember the milk")
    assert data.notes() == "remember the milk"


def test_mood_one_entry_per_day() -> None:
    backend = MemoryBackend()
    data = _data(backend)
    data.record_mood(2)
    data.record_mood(5, note="better")
    assert len(data.moods()) == 1
    assert data.today_mood().mood == 5
    tomorrow = _data(backend, today=date(2026, 10, 20))
    tomorrow.record_mood(3)
    assert [m.mood for m in tomorrow.moods()] == [3, 5]
    assert tomorrow.average_mood() == 4.0
    assert len(tomorrow.recent_moods(1)) == 1


def test_stored_todos_use_camel_case_fields() -> None:
    backend = MemoryBackend()
    _data(backend).add_todo("x")
    stored = json.loads(backend.data["todos"])
    assert sorted(stored[0]) == ["completed", "createdAt", "id", "text"]


def test_seeded_defaults_are_not_shared() -> None:
    links = _data().quick_links()
    links[0].name = "Changed"
    assert DEFAULT_QUICK_LINKS[0].name != "Changed"
    assert _data().quick_links()[0].name == DEFAULT_QUICK_LINKS[0].name
