"""Transient user notifications.

Each notification stays visible for ttl seconds and is then dismissed
automatically. Listeners are told about every new notification so a
front end can draw it immediately.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

Level = Literal["info", "success", "error"]


@dataclass(frozen=True)
class Notification:
    message: str
    level: Level
    created_at: float


@dataclass
class Notifier:
    """Collects notifications and expires them after ttl seconds.

    Example:
        >>> notifier = Notifier(ttl=3.0)
        >>> notifier.success("Workflow saved successfully")
        >>> [n.message for n in notifier.active()]
        ['Workflow saved successfully']
    """

    ttl: float = 3.0
    clock: Callable[[], float] = time.monotonic

    # Most recent notifications, oldest first
    history: list[Notification] = field(default_factory=list)
    max_history: int = 100

    _listeners: list[Callable[[Notification], None]] = field(default_factory=list, repr=False)

    def notify(self, message: str, level: Level = "info") -> Notification:
        notification = Notification(message=message, level=level, created_at=self.clock())
        self.history.append(notification)
        del self.history[: -self.max_history]
        for listener in list(self._listeners):
            listener(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.notify(message, "success")

    def error(self, message: str) -> Notification:
        return self.notify(message, "error")

    def active(self, now: float | None = None) -> list[Notification]:
        """Notifications that have not yet been auto-dismissed."""
        now = self.clock() if now is None else now
        return [n for n in self.history if now - n.created_at < self.ttl]

    def add_listener(self, listener: Callable[[Notification], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove
