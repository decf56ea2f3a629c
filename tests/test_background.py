from __future__ import annotations

import asyncio
import json
from datetime import date

import pytest

from homedash.config.store import MemoryBackend, PersistentStore
from homedash.core.errors import CacheMissError, TransportError
from homedash.core.notifications import MemoryNotificationSink
from homedash.runtime.background import BackgroundCache, date_key


class Clock:
    def __init__(self, current: date) -> None:
        self.current = current

    def __call__(self) -> date:
        return self.current


class CountingFetcher:
    def __init__(self, *values: str) -> None:
        self.values = list(values)
        self.calls = 0
        self.fail = False
        self.gate: asyncio.Event | None = None

    async def __call__(self, resource_key: str) -> str:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise TransportError("offline")
        return self.values.pop(0)


def test_date_key_names() -> None:
    assert date_key("dailyBackground") == "backgroundDate"
    assert date_key("dailyQuote") == "dailyQuoteDate"


@pytest.mark.asyncio
async def test_same_day_reuses_cached_value() -> None:
    backend = MemoryBackend()
    fetcher = CountingFetcher("https://img/1.jpg", "https://img/2.jpg")
    clock = Clock(date(2024, 5, 1))
    cache = BackgroundCache(PersistentStore(backend), fetcher, today=clock)

    assert await cache.fetch() == "https://img/1.jpg"
    assert await cache.fetch() == "https://img/1.jpg"
    assert fetcher.calls == 1
    assert json.loads(backend.data["backgroundDate"]) == "2024-05-01"

    clock.current = date(2024, 5, 2)
    assert await cache.fetch() == "https://img/2.jpg"
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_failure_returns_fallback_and_retries() -> None:
    backend = MemoryBackend()
    sink = MemoryNotificationSink()
    fetcher = CountingFetcher("https://img/ok.jpg")
    fetcher.fail = True
    cache = BackgroundCache(PersistentStore(backend), fetcher, today=lambda: date(2024, 5, 1), notifications=sink)

    assert await cache.fetch() == ""
    assert "dailyBackground" not in backend.data
    assert sink.titles == ["Background unavailable"]

    fetcher.fail = False
    assert await cache.fetch() == "https://img/ok.jpg"
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_concurrent_fetches_share_one_request() -> None:
    fetcher = CountingFetcher("https://img/1.jpg")
    fetcher.gate = asyncio.Event()
    cache = BackgroundCache(PersistentStore(), fetcher, today=lambda: date(2024, 5, 1))

    first = asyncio.create_task(cache.fetch())
    second = asyncio.create_task(cache.fetch())
    await asyncio.sleep(0)
    fetcher.gate.set()

    assert await asyncio.gather(first, second) == ["https://img/1.jpg", "https://img/1.jpg"]
    assert fetcher.calls == 1


def test_cached_raises_on_stale_date() -> None:
    backend = MemoryBackend(
        {"dailyBackground": json.dumps("https://img/old.jpg"), "backgroundDate": json.dumps("2024-04-30")}
    )
    cache = BackgroundCache(PersistentStore(backend), CountingFetcher(), today=lambda: date(2024, 5, 1))
    with pytest.raises(CacheMissError):
        cache.cached()


@pytest.mark.asyncio
async def test_invalidate_forces_refetch() -> None:
    fetcher = CountingFetcher("https://img/1.jpg", "https://img/2.jpg")
    cache = BackgroundCache(PersistentStore(), fetcher, today=lambda: date(2024, 5, 1))
    await cache.fetch()
    assert cache.invalidate() == "https://img/1.jpg"
    assert await cache.fetch() == "https://img/2.jpg"
