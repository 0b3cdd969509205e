import asyncio
from collections.abc import Sequence

from app.classification.base import BaseClassifier
from app.classification.exceptions import ClassificationError
from app.classification.models import ClassificationResult
from app.logging.logger import Log
from app.upload.events import EntryUpdated, EventBus
from app.upload.matching import find_matching_slot
from app.upload.models import DocumentTypeSlot, LifecycleState, QueuedFile
from app.upload.selection_sync import SelectionSync


class ClassificationPipeline:
    """Classifies one queued file and resolves the slot it should fill.

    A missing classification is a normal outcome: the entry still becomes
    "classified", only without a payload, and the reviewer picks the type.
    """

    def __init__(
        self,
        classifier: BaseClassifier,
        sync: SelectionSync,
        bus: EventBus,
    ) -> None:
        self._classifier = classifier
        self._sync = sync
        self._bus = bus

    async def run(self, entry: QueuedFile, slots: Sequence[DocumentTypeSlot]) -> None:
        result = await self._classify(entry)
        entry.transition(LifecycleState.CLASSIFIED)

        by_id = {slot.id: slot for slot in slots}
        pinned = by_id.get(entry.pinned_document_type_id or "")
        if result is not None:
            entry.attach_classification(result)
            match = find_matching_slot(result.detected_type, slots)
            target = pinned or match
        else:
            target = pinned
        entry.retarget(target)

        self._bus.publish(EntryUpdated(entry_id=entry.id, state=entry.state.value))
        if target is not None:
            self._sync.highlight(target.id)
        Log.info(
            f"Entry {entry.id} classified "
            f"({'no result' if result is None else result.detected_type}), "
            f"target {entry.target_document_type_id}"
        )

    async def _classify(self, entry: QueuedFile) -> ClassificationResult | None:
        try:
            return await asyncio.to_thread(
                self._classifier.classify, entry.source_file.to_payload()
            )
        except ClassificationError as exc:
            Log.warning(f"Classification unavailable for {entry.source_file.filename}: {exc}")
        except Exception:
            # The entry must still leave "classifying" or it could never be removed.
            Log.exception(f"Classifier crashed on {entry.source_file.filename}")
        return None
