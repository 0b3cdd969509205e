import asyncio

from app.logging.logger import Log
from app.upload.checklist import SlotStatus, can_upload
from app.upload.events import (
    EventBus,
    HighlightCleared,
    PreferredTargetChanged,
    SlotHighlighted,
    UploadZoneFocusRequested,
)


class SelectionSync:
    """Bridges the document checklist and the upload queue.

    Checklist -> upload: picking an open slot pins it as the preferred target
    of the next drop and asks the upload zone to come into view.
    Upload -> checklist: a resolved or changed target highlights its slot
    for a fixed interval; re-highlighting restarts the interval.

    The pin survives classification. It is cleared only explicitly or when
    a file is committed to the pinned slot.
    """

    def __init__(self, bus: EventBus, highlight_timeout_seconds: float = 3.0) -> None:
        self._bus = bus
        self._timeout = highlight_timeout_seconds
        self._preferred_target: str | None = None
        self._highlighted: str | None = None
        self._timer: asyncio.TimerHandle | None = None

    @property
    def preferred_target(self) -> str | None:
        return self._preferred_target

    @property
    def highlighted_slot(self) -> str | None:
        return self._highlighted

    def select_slot(self, slot_id: str, status: SlotStatus) -> bool:
        """Pin a checklist slot. Returns False for slots that cannot take an upload."""
        if not can_upload(status):
            Log.debug(f"Ignoring selection of slot {slot_id} with status {status.value}")
            return False
        self._set_pin(slot_id)
        self._bus.publish(UploadZoneFocusRequested(slot_id=slot_id))
        return True

    def clear_pin(self) -> None:
        if self._preferred_target is not None:
            self._set_pin(None)

    def commit_succeeded(self, slot_id: str) -> None:
        if self._preferred_target == slot_id:
            self._set_pin(None)

    def highlight(self, slot_id: str) -> None:
        """Highlight a slot; must be called from the event loop thread."""
        loop = asyncio.get_running_loop()
        self._cancel_timer()
        self._highlighted = slot_id
        self._bus.publish(SlotHighlighted(slot_id=slot_id))
        self._timer = loop.call_later(self._timeout, self._expire_highlight)

    def clear_highlight(self) -> None:
        self._cancel_timer()
        self._expire_highlight()

    def close(self) -> None:
        self._cancel_timer()

    def _expire_highlight(self) -> None:
        self._timer = None
        if self._highlighted is None:
            return
        slot_id, self._highlighted = self._highlighted, None
        self._bus.publish(HighlightCleared(slot_id=slot_id))

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _set_pin(self, slot_id: str | None) -> None:
        self._preferred_target = slot_id
        self._bus.publish(PreferredTargetChanged(slot_id=slot_id))
