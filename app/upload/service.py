import asyncio
from collections.abc import Iterable, Sequence

from app.classification.base import BaseClassifier
from app.classification.factory import ClassifierFactory
from app.config.settings import Settings
from app.database.exceptions import MetadataStoreError
from app.database.models import LeadDocumentRecord
from app.database.repositories.document_types_repository import DocumentTypesRepository
from app.database.repositories.lead_documents_repository import LeadDocumentsRepository
from app.logging.logger import Log
from app.storage.base import BaseObjectStorage
from app.storage.factory import ObjectStorageFactory
from app.upload.checklist import ChecklistItem, build_checklist, document_status, documents_by_slot
from app.upload.classification_pipeline import ClassificationPipeline
from app.upload.commit import CommitOutcome, CommitPipeline, CommitResult
from app.upload.display import EntryView, QueueSummary, describe_entry, summarize
from app.upload.events import EntryRemoved, EntryUpdated, EventBus
from app.upload.exceptions import InvalidTransitionError, UnknownDocumentTypeError
from app.upload.intake import FileIntake, FileValidator, IntakeReport
from app.upload.matching import match_person_name
from app.upload.mismatch import MismatchDetector
from app.upload.models import (
    DocumentTypeSlot,
    LifecycleState,
    QueuedFile,
    SourceFile,
    UploaderProfile,
    uploader_profile,
)
from app.upload.preview import PreviewStore
from app.upload.queue import UploadQueue
from app.upload.selection_sync import SelectionSync


class SmartUpload:
    """The smart-upload panel of one lead: queue, classification, checklist sync, commit.

    All methods run on the event loop; classification runs as one task per
    file so entries progress independently.
    """

    def __init__(
        self,
        *,
        lead_id: str,
        slots: Sequence[DocumentTypeSlot],
        profile: UploaderProfile,
        intake: FileIntake,
        queue: UploadQueue,
        previews: PreviewStore,
        classification: ClassificationPipeline,
        commit: CommitPipeline,
        sync: SelectionSync,
        documents_repo: LeadDocumentsRepository,
        bus: EventBus,
        applicant_name: str | None = None,
        co_applicant_name: str | None = None,
        auto_remove_delay_seconds: float = 2.0,
    ) -> None:
        self.lead_id = lead_id
        self.bus = bus
        self.sync = sync
        self._profile = profile
        self._slots = [slot for slot in slots if profile.can_select(slot)]
        self._slots_by_id = {slot.id: slot for slot in self._slots}
        self._intake = intake
        self._queue = queue
        self._previews = previews
        self._classification = classification
        self._commit = commit
        self._documents_repo = documents_repo
        self._applicant_name = applicant_name
        self._co_applicant_name = co_applicant_name
        self._auto_remove_delay = auto_remove_delay_seconds
        self._documents: dict[str, LeadDocumentRecord] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._removals: dict[str, asyncio.TimerHandle] = {}
        self._slot_locks: dict[str, asyncio.Lock] = {}

    @property
    def slots(self) -> list[DocumentTypeSlot]:
        """Slots this uploader may target, in checklist order."""
        return list(self._slots)

    @property
    def entries(self) -> list[QueuedFile]:
        return list(self._queue)

    def entry(self, entry_id: str) -> QueuedFile:
        return self._queue.get(entry_id)

    async def refresh_documents(self) -> None:
        """Reload the lead's committed documents (checklist source of truth)."""
        documents = await asyncio.to_thread(self._documents_repo.list_for_lead, self.lead_id)
        self._documents = documents_by_slot(documents)

    def add_files(self, files: Iterable[SourceFile]) -> IntakeReport:
        """Validate a dropped batch and start classifying every accepted file."""
        report = self._intake.accept(files, preferred_target=self.sync.preferred_target)
        for entry in report.accepted:
            task = asyncio.get_running_loop().create_task(
                self._classification.run(entry, self._slots),
                name=f"classify-{entry.id}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return report

    async def wait_idle(self) -> None:
        """Wait for every classification started so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def select_slot(self, slot_id: str) -> bool:
        """Checklist click: pin the slot as the target of the next drop."""
        self._require_slot(slot_id)
        return self.sync.select_slot(slot_id, document_status(self._documents.get(slot_id)))

    def clear_preferred_target(self) -> None:
        self.sync.clear_pin()

    def change_target(self, entry_id: str, slot_id: str) -> None:
        """Manual re-target from the entry's document type dropdown."""
        entry = self._queue.get(entry_id)
        slot = self._require_slot(slot_id)
        if entry.state is not LifecycleState.CLASSIFIED:
            raise InvalidTransitionError(
                f"Queue entry {entry_id} cannot change type while {entry.state.value}"
            )
        entry.retarget(slot)
        entry.pending_confirmation = None
        self.bus.publish(EntryUpdated(entry_id=entry.id, state=entry.state.value))
        self.sync.highlight(slot.id)

    async def approve(self, entry_id: str, skip_confirmation: bool = False) -> CommitResult:
        """Approve and upload one entry (the "Approve & Upload" button)."""
        entry = self._queue.get(entry_id)
        slot_id = entry.target_document_type_id
        slot = self._slots_by_id.get(slot_id) if slot_id else None
        if slot is None:
            return await self._commit.approve(entry, None, None, skip_confirmation=skip_confirmation)

        # One commit per slot at a time; the replaced document is read under the lock.
        async with self._slot_locks.setdefault(slot.id, asyncio.Lock()):
            existing = self._documents.get(slot.id)
            result = await self._commit.approve(entry, slot, existing, skip_confirmation=skip_confirmation)
            if result.outcome is CommitOutcome.COMMITTED and result.document is not None:
                self._documents[slot.id] = result.document
                self._schedule_removal(entry.id)
            elif result.outcome is CommitOutcome.FAILED and existing is not None:
                await self._reload_slot(slot.id)
        return result

    async def confirm_override(self, entry_id: str) -> CommitResult:
        """The reviewer accepted the mismatch warning."""
        return await self.approve(entry_id, skip_confirmation=True)

    def cancel_override(self, entry_id: str) -> None:
        """The reviewer declined the mismatch warning; nothing else changes."""
        entry = self._queue.get(entry_id)
        if entry.pending_confirmation is not None:
            entry.pending_confirmation = None
            self.bus.publish(EntryUpdated(entry_id=entry.id, state=entry.state.value))

    async def upload_all(self, skip_confirmation: bool = False) -> dict[str, CommitResult]:
        """Approve every classified entry that has a target, one after another."""
        results: dict[str, CommitResult] = {}
        for entry in self._queue:
            if entry.state is LifecycleState.CLASSIFIED and entry.target_document_type_id:
                results[entry.id] = await self.approve(entry.id, skip_confirmation=skip_confirmation)
        return results

    def remove(self, entry_id: str) -> None:
        """Discard an entry. Refused while it is classifying or uploading."""
        self._queue.remove(entry_id)
        self._cancel_removal(entry_id)
        self.bus.publish(EntryRemoved(entry_id=entry_id))

    def checklist(self) -> list[ChecklistItem]:
        return build_checklist(
            self._slots, self._documents, self.sync.highlighted_slot, role=self._profile.role
        )

    def describe(self, entry_id: str) -> EntryView:
        entry = self._queue.get(entry_id)
        detected_name = entry.classification.detected_name if entry.classification else None
        name_match = (
            match_person_name(detected_name, self._applicant_name, self._co_applicant_name)
            if detected_name
            else None
        )
        return describe_entry(entry, name_match)

    def summary(self) -> QueueSummary:
        return summarize(self._queue)

    async def aclose(self) -> None:
        """Wait for classification, then release every resource the session holds."""
        await self.wait_idle()
        for entry_id in list(self._removals):
            self._cancel_removal(entry_id)
            self._expire(entry_id)
        self.sync.close()
        self._previews.close()
        self._commit.close()

    def _schedule_removal(self, entry_id: str) -> None:
        loop = asyncio.get_running_loop()
        self._removals[entry_id] = loop.call_later(self._auto_remove_delay, self._expire, entry_id)

    def _cancel_removal(self, entry_id: str) -> None:
        handle = self._removals.pop(entry_id, None)
        if handle is not None:
            handle.cancel()

    def _expire(self, entry_id: str) -> None:
        self._removals.pop(entry_id, None)
        if self._queue.expire(entry_id) is not None:
            Log.debug(f"Auto-removed uploaded entry {entry_id}")
            self.bus.publish(EntryRemoved(entry_id=entry_id))

    async def _reload_slot(self, slot_id: str) -> None:
        """Re-read one slot after a failed replace may have removed its document."""
        try:
            document = await asyncio.to_thread(self._documents_repo.find_for_slot, self.lead_id, slot_id)
        except MetadataStoreError as exc:
            Log.warning(f"Could not reload document for type {slot_id}: {exc}")
            self._documents.pop(slot_id, None)
            return
        if document is None:
            self._documents.pop(slot_id, None)
        else:
            self._documents[slot_id] = document

    def _require_slot(self, slot_id: str) -> DocumentTypeSlot:
        slot = self._slots_by_id.get(slot_id)
        if slot is None:
            raise UnknownDocumentTypeError(
                f"Document type {slot_id} is not available to {self._profile.role} uploads"
            )
        return slot


def build_smart_upload(
    settings: Settings,
    lead_id: str,
    *,
    slots: Sequence[DocumentTypeSlot] | None = None,
    storage: BaseObjectStorage | None = None,
    classifier: BaseClassifier | None = None,
    applicant_name: str | None = None,
    co_applicant_name: str | None = None,
    bus: EventBus | None = None,
) -> SmartUpload:
    """Build a SmartUpload for one lead with all required adapters."""
    bus = bus or EventBus()
    profile = uploader_profile(settings.uploader_role)
    if slots is None:
        slots = [DocumentTypeSlot.from_record(record) for record in DocumentTypesRepository().list_active()]
    storage = storage or ObjectStorageFactory.create(settings)
    classifier = classifier or ClassifierFactory.create(settings)
    documents_repo = LeadDocumentsRepository()

    previews = PreviewStore()
    queue = UploadQueue(previews)
    sync = SelectionSync(bus, highlight_timeout_seconds=settings.highlight_timeout_seconds)
    intake = FileIntake(
        FileValidator(settings.max_upload_bytes, settings.allowed_extensions),
        queue,
        previews,
        bus,
    )
    commit = CommitPipeline(
        lead_id=lead_id,
        profile=profile,
        storage=storage,
        documents_repo=documents_repo,
        mismatch_detector=MismatchDetector(
            applicant_name,
            co_applicant_name,
            confidence_threshold=settings.type_mismatch_confidence_threshold,
        ),
        sync=sync,
        bus=bus,
    )
    return SmartUpload(
        lead_id=lead_id,
        slots=slots,
        profile=profile,
        intake=intake,
        queue=queue,
        previews=previews,
        classification=ClassificationPipeline(classifier, sync, bus),
        commit=commit,
        sync=sync,
        documents_repo=documents_repo,
        bus=bus,
        applicant_name=applicant_name,
        co_applicant_name=co_applicant_name,
        auto_remove_delay_seconds=settings.auto_remove_delay_seconds,
    )
