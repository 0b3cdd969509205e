import asyncio

import pytest

from app.upload.checklist import SlotStatus
from app.upload.events import (
    EventBus,
    HighlightCleared,
    PreferredTargetChanged,
    SlotHighlighted,
    UploadZoneFocusRequested,
)
from app.upload.selection_sync import SelectionSync


def _record_events(bus: EventBus) -> list[object]:
    events: list[object] = []
    for event_type in (SlotHighlighted, HighlightCleared, PreferredTargetChanged, UploadZoneFocusRequested):
        bus.subscribe(event_type, events.append)
    return events


class TestSelectSlot:
    def test_open_slot_is_pinned_and_focuses_upload_zone(self) -> None:
        bus = EventBus()
        events = _record_events(bus)
        sync = SelectionSync(bus)

        assert sync.select_slot("dt-pan", SlotStatus.NOT_UPLOADED)

        assert sync.preferred_target == "dt-pan"
        assert events == [PreferredTargetChanged("dt-pan"), UploadZoneFocusRequested("dt-pan")]

    def test_rejected_slot_can_be_pinned(self) -> None:
        sync = SelectionSync(EventBus())
        assert sync.select_slot("dt-pan", SlotStatus.REJECTED)

    @pytest.mark.parametrize("status", [SlotStatus.UPLOADED, SlotStatus.PENDING, SlotStatus.VERIFIED])
    def test_filled_slot_is_ignored(self, status: SlotStatus) -> None:
        bus = EventBus()
        events = _record_events(bus)
        sync = SelectionSync(bus)

        assert not sync.select_slot("dt-pan", status)
        assert sync.preferred_target is None
        assert events == []

    def test_commit_to_pinned_slot_clears_pin(self) -> None:
        sync = SelectionSync(EventBus())
        sync.select_slot("dt-pan", SlotStatus.NOT_UPLOADED)
        sync.commit_succeeded("dt-bank")
        assert sync.preferred_target == "dt-pan"
        sync.commit_succeeded("dt-pan")
        assert sync.preferred_target is None

    def test_clear_pin(self) -> None:
        bus = EventBus()
        sync = SelectionSync(bus)
        sync.select_slot("dt-pan", SlotStatus.NOT_UPLOADED)
        events = _record_events(bus)
        sync.clear_pin()
        sync.clear_pin()
        assert events == [PreferredTargetChanged(None)]


class TestHighlight:
    @pytest.mark.asyncio
    async def test_highlight_clears_after_timeout(self) -> None:
        bus = EventBus()
        events = _record_events(bus)
        sync = SelectionSync(bus, highlight_timeout_seconds=0.05)

        sync.highlight("dt-pan")
        assert sync.highlighted_slot == "dt-pan"
        await asyncio.sleep(0.1)

        assert sync.highlighted_slot is None
        assert events == [SlotHighlighted("dt-pan"), HighlightCleared("dt-pan")]

    @pytest.mark.asyncio
    async def test_retrigger_resets_timer(self) -> None:
        bus = EventBus()
        events = _record_events(bus)
        sync = SelectionSync(bus, highlight_timeout_seconds=0.2)

        sync.highlight("dt-pan")
        await asyncio.sleep(0.12)
        sync.highlight("dt-bank")
        await asyncio.sleep(0.12)

        assert sync.highlighted_slot == "dt-bank"
        assert HighlightCleared("dt-pan") not in events
        await asyncio.sleep(0.15)
        assert sync.highlighted_slot is None
        assert events[-1] == HighlightCleared("dt-bank")

    @pytest.mark.asyncio
    async def test_close_cancels_pending_timer(self) -> None:
        bus = EventBus()
        events = _record_events(bus)
        sync = SelectionSync(bus, highlight_timeout_seconds=0.05)

        sync.highlight("dt-pan")
        sync.close()
        await asyncio.sleep(0.1)

        assert events == [SlotHighlighted("dt-pan")]

    @pytest.mark.asyncio
    async def test_clear_highlight_is_immediate(self) -> None:
        bus = EventBus()
        events = _record_events(bus)
        sync = SelectionSync(bus, highlight_timeout_seconds=0.05)

        sync.highlight("dt-pan")
        sync.clear_highlight()
        await asyncio.sleep(0.1)

        assert sync.highlighted_slot is None
        assert events == [SlotHighlighted("dt-pan"), HighlightCleared("dt-pan")]

    @pytest.mark.asyncio
    async def test_highlight_does_not_touch_pin(self) -> None:
        sync = SelectionSync(EventBus(), highlight_timeout_seconds=0.01)
        sync.select_slot("dt-pan", SlotStatus.NOT_UPLOADED)
        sync.highlight("dt-bank")
        await asyncio.sleep(0.05)
        assert sync.preferred_target == "dt-pan"
