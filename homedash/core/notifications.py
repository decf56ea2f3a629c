from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

from homedash.core.errors import DashboardError

Level = Literal["info", "success", "warning", "error"]


@dataclass(slots=True, frozen=True)
class Notification:
    """Notification transitoire affichée à l'utilisateur."""

    title: str
    message: str
    level: Level = "info"

    @classmethod
    def from_error(cls, title: str, error: DashboardError) -> "Notification":
        return cls(title=title, message=error.message, level="error")


class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingNotificationSink:
    """Écrit les notifications dans le journal."""

    _LEVELS = {
        "info": logging.INFO,
        "success": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("homedash.notifications")

    def notify(self, notification: Notification) -> None:
        self.logger.log(
            self._LEVELS.get(notification.level, logging.INFO),
            "%s: %s",
            notification.title,
            notification.message,
        )


class MemoryNotificationSink:
    """Conserve les notifications reçues (tests, CLI)."""

    def __init__(self) -> None:
        self.items: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.items.append(notification)

    @property
    def titles(self) -> list[str]:
        return [item.title for item in self.items]

    def clear(self) -> None:
        self.items.clear()
