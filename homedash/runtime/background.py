"""Fetch-once-per-day cache for the dashboard background image."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, Optional

from ..config.store import PersistentStore
from ..core.errors import CacheMissError, TransportError
from ..core.notifications import Notification, NotificationSink


logger = logging.getLogger("homedash.background")

DAILY_BACKGROUND = "dailyBackground"
FALLBACK = ""

# Historical date key names; other resources use "<key>Date".
_DATE_KEYS = {DAILY_BACKGROUND: "backgroundDate"}

Fetcher = Callable[[str], Awaitable[str]]


def date_key(resource_key: str) -> str:
    return _DATE_KEYS.get(resource_key, f"{resource_key}Date")


class BackgroundCache:
    """Reuse a value only when it was fetched on the caller's current date.

    Concurrent ``fetch`` calls for the same key share one in-flight request.
    A failed request returns the empty fallback and persists nothing, so the
    next call on the same day tries again.
    """

    def __init__(
        self,
        store: PersistentStore,
        fetcher: Fetcher,
        *,
        today: Callable[[], date] = date.today,
        notifications: NotificationSink | None = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.today = today
        self.notifications = notifications
        self._inflight: dict[str, asyncio.Task[str]] = {}

    def cached(self, resource_key: str = DAILY_BACKGROUND) -> str:
        """Return today's cached value or raise :class:`CacheMissError`."""
        stamp = self.store.get(date_key(resource_key), None, schema=str, seed=False)
        value = self.store.get(resource_key, None, schema=str, seed=False)
        if not value or stamp != self.today().isoformat():
            raise CacheMissError(details={"resource": resource_key})
        return value

    async def fetch(self, resource_key: str = DAILY_BACKGROUND) -> str:
        try:
            return self.cached(resource_key)
        except CacheMissError:
            logger.info("No cached %s for today, fetching", resource_key)

        task = self._inflight.get(resource_key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(resource_key))
            self._inflight[resource_key] = task
            task.add_done_callback(lambda _t, key=resource_key: self._inflight.pop(key, None))
        return await asyncio.shield(task)

    async def _refresh(self, resource_key: str) -> str:
        stamp = self.today().isoformat()
        try:
            value = await self.fetcher(resource_key)
        except TransportError as exc:
            logger.warning("Failed to fetch %s: %s", resource_key, exc.message)
            if self.notifications is not None:
                self.notifications.notify(Notification.from_error("Background unavailable", exc))
            return FALLBACK
        if not value:
            return FALLBACK
        try:
            self.store.set(resource_key, value)
            self.store.set(date_key(resource_key), stamp)
        except OSError:
            logger.warning("Could not cache %s, serving it uncached", resource_key)
        return value

    def invalidate(self, resource_key: str = DAILY_BACKGROUND) -> Optional[str]:
        previous = self.store.get(resource_key, None, seed=False)
        self.store.delete(resource_key)
        self.store.delete(date_key(resource_key))
        return previous
