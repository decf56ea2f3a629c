from __future__ import annotations

import json
from pathlib import Path

import pytest

from homedash.config.store import JsonDirectoryBackend, MemoryBackend, PersistentStore


@pytest.mark.parametrize(
    "value",
    [
        "dark",
        42,
        3.5,
        True,
        None,
        [1, "two", {"three": 3}],
        {"clock": True, "todo": False, "nested": {"list": [1, 2]}},
        "accents é et emoji 😄",
    ],
)
def test_set_then_get_round_trips(value) -> None:
    store = PersistentStore()
    store.set("key", value)
    assert store.get("key", "unused") == value


def test_absent_key_is_seeded_with_default() -> None:
    backend = MemoryBackend()
    store = PersistentStore(backend)
    assert store.get("enabledWidgets", {"clock": True}) == {"clock": True}
    assert json.loads(backend.data["enabledWidgets"]) == {"clock": True}


def test_seed_false_leaves_store_untouched() -> None:
    backend = MemoryBackend()
    store = PersistentStore(backend)
    assert store.get("stickyNotes", "", seed=False) == ""
    assert "stickyNotes" not in backend.data


def test_malformed_json_falls_back_and_reseeds(caplog) -> None:
    backend = MemoryBackend({"todos": "{not json"})
    store = PersistentStore(backend)
    assert store.get("todos", []) == []
    assert backend.data["todos"] == "[]"
    assert any("key=todos" in record.getMessage() for record in caplog.records)


def test_unexpected_shape_is_treated_as_absent() -> None:
    backend = MemoryBackend({"enabledWidgets": json.dumps(["clock"])})
    store = PersistentStore(backend)
    assert store.get("enabledWidgets", {"clock": True}, schema=dict[str, bool]) == {"clock": True}


def test_watch_runs_after_set_and_can_unsubscribe() -> None:
    store = PersistentStore()
    seen: list[tuple[str, object]] = []
    unwatch = store.watch("theme", lambda key, value: seen.append((key, value)))
    store.set("theme", "light")
    unwatch()
    store.set("theme", "dark")
    assert seen == [("theme", "light")]


def test_bound_value_update() -> None:
    store = PersistentStore()
    counter = store.bind("counter", 0)
    assert counter.get() == 0
    assert counter.update(lambda n: n + 1) == 1
    assert store.get("counter", 0) == 1


def test_directory_backend_round_trip_and_keys(tmp_path: Path) -> None:
    store = PersistentStore(JsonDirectoryBackend(tmp_path))
    store.set("quickLinks", [{"id": "1", "name": "Google"}])
    store.set("theme", "light")
    assert store.get("quickLinks", []) == [{"id": "1", "name": "Google"}]
    assert sorted(store.keys()) == ["quickLinks", "theme"]
    store.delete("theme")
    assert store.get("theme", None) is None


def test_directory_backend_failed_write_keeps_previous_content(tmp_path: Path, monkeypatch) -> None:
    store = PersistentStore(JsonDirectoryBackend(tmp_path))
    store.set("todos", [{"text": "first"}])

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("homedash.config.store.os.replace", boom)
    with pytest.raises(OSError):
        store.set("todos", [{"text": "second"}])
    monkeypatch.undo()

    assert store.get("todos", []) == [{"text": "first"}]
    assert not list(tmp_path.glob("*.tmp"))


def test_directory_backend_tolerates_garbage_bytes(tmp_path: Path) -> None:
    (tmp_path / "theme.json").write_bytes(b"\xff\xfe\x00garbage")
    store = PersistentStore(JsonDirectoryBackend(tmp_path))
    assert store.get("theme", "dark") == "dark"


def test_directory_backend_keeps_distinct_keys_apart(tmp_path: Path) -> None:
    store = PersistentStore(JsonDirectoryBackend(tmp_path))
    store.set("a_b", 1)
    with pytest.raises(ValueError):
        store.set("a/b", 2)
    assert store.get("a_b", None) == 1
    assert store.keys() == ["a_b"]
