"""Typed messages exchanged between the upload queue, the checklist and the toast surface."""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from app.logging.logger import Log

EventT = TypeVar("EventT")
Handler = Callable[[Any], None]


@dataclass(frozen=True)
class SlotHighlighted:
    slot_id: str


@dataclass(frozen=True)
class HighlightCleared:
    slot_id: str


@dataclass(frozen=True)
class UploadZoneFocusRequested:
    slot_id: str


@dataclass(frozen=True)
class PreferredTargetChanged:
    slot_id: str | None


@dataclass(frozen=True)
class EntryUpdated:
    entry_id: str
    state: str


@dataclass(frozen=True)
class EntryRemoved:
    entry_id: str


@dataclass(frozen=True)
class OverrideRequired:
    entry_id: str
    message: str


@dataclass(frozen=True)
class DocumentCommitted:
    entry_id: str
    document_type_id: str
    document_id: str


@dataclass(frozen=True)
class Notification:
    """A toast. level is one of "success", "info", "error"."""

    level: str
    title: str
    description: str = ""


class EventBus:
    """Synchronous in-process publish/subscribe keyed by event class."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[EventT], handler: Callable[[EventT], None]) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

        return unsubscribe

    def publish(self, event: object) -> None:
        for handler in list(self._handlers.get(type(event), ())):
            try:
                handler(event)
            except Exception:
                Log.exception(f"Handler {handler!r} failed for {type(event).__name__}")

    def notify(self, level: str, title: str, description: str = "") -> None:
        self.publish(Notification(level=level, title=title, description=description))


class LogNotificationSink:
    """Writes toasts to the application log (the CLI's notification surface)."""

    def __init__(self, bus: EventBus) -> None:
        self._unsubscribe = bus.subscribe(Notification, self._on_notification)

    def _on_notification(self, notification: Notification) -> None:
        line = f"[{notification.level}] {notification.title}"
        if notification.description:
            line = f"{line}: {notification.description}"
        if notification.level == "error":
            Log.error(line)
        else:
            Log.info(line)

    def close(self) -> None:
        self._unsubscribe()
