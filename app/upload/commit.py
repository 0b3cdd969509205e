import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from app.database.exceptions import DocumentNotFoundError, MetadataStoreError
from app.database.models import LeadDocumentRecord, NewLeadDocument
from app.database.repositories.lead_documents_repository import LeadDocumentsRepository
from app.logging.logger import Log
from app.storage.base import BaseObjectStorage
from app.storage.exceptions import StorageError
from app.upload.events import DocumentCommitted, EntryUpdated, EventBus, OverrideRequired
from app.upload.exceptions import InvalidTransitionError
from app.upload.mismatch import MismatchDetector
from app.upload.models import DocumentTypeSlot, LifecycleState, QueuedFile, UploaderProfile
from app.upload.selection_sync import SelectionSync


class CommitOutcome(str, Enum):
    MISSING_TARGET = "missing_target"
    NEEDS_CONFIRMATION = "needs_confirmation"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class CommitResult:
    outcome: CommitOutcome
    document: LeadDocumentRecord | None = None
    message: str = ""


def object_path(lead_id: str, document_type_id: str, timestamp: datetime, extension: str) -> str:
    """Storage key of a committed file: {lead}/{document type}/{epoch millis}.{ext}."""
    millis = int(timestamp.timestamp() * 1000)
    return f"{lead_id}/{document_type_id}/{millis}.{extension}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CommitPipeline:
    """Persists an approved queue entry: gatekeeping, then storage, then metadata.

    Replacing an existing document deletes its row and stored object before
    the new file is written. The two steps are not atomic.
    """

    def __init__(
        self,
        *,
        lead_id: str,
        profile: UploaderProfile,
        storage: BaseObjectStorage,
        documents_repo: LeadDocumentsRepository,
        mismatch_detector: MismatchDetector,
        sync: SelectionSync,
        bus: EventBus,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._lead_id = lead_id
        self._profile = profile
        self._storage = storage
        self._documents_repo = documents_repo
        self._mismatch_detector = mismatch_detector
        self._sync = sync
        self._bus = bus
        self._clock = clock

    async def approve(
        self,
        entry: QueuedFile,
        slot: DocumentTypeSlot | None,
        existing: LeadDocumentRecord | None,
        skip_confirmation: bool = False,
    ) -> CommitResult:
        """Run the commit gates for one entry and persist it when they pass.

        Args:
            entry: A "classified" queue entry.
            slot: The entry's target slot, None when no target is set.
            existing: The document currently committed for that slot.
            skip_confirmation: The reviewer already accepted the mismatch override.
        """
        if entry.state is not LifecycleState.CLASSIFIED:
            raise InvalidTransitionError(
                f"Queue entry {entry.id} cannot be committed while {entry.state.value}"
            )
        if slot is None:
            self._bus.notify("error", "Select document type", "Please select the document type before uploading")
            return CommitResult(CommitOutcome.MISSING_TARGET, message="Select document type")

        if existing is not None and not skip_confirmation:
            self._bus.notify(
                "info",
                "Document will be replaced",
                f"{slot.name} already exists. The previous version will be replaced.",
            )

        if not skip_confirmation:
            report = self._mismatch_detector.check(entry, slot)
            if report.has_issue:
                entry.pending_confirmation = report.message
                self._bus.publish(OverrideRequired(entry_id=entry.id, message=report.message))
                Log.info(f"Entry {entry.id} needs admin override: {report.message}")
                return CommitResult(CommitOutcome.NEEDS_CONFIRMATION, message=report.message)

        entry.pending_confirmation = None
        entry.transition(LifecycleState.UPLOADING)
        self._bus.publish(EntryUpdated(entry_id=entry.id, state=entry.state.value))

        try:
            document = await self._persist(entry, slot, existing)
        except (StorageError, MetadataStoreError) as exc:
            Log.error(f"Upload of entry {entry.id} to {slot.id} failed: {exc}")
            entry.error = "Upload failed"
            entry.transition(LifecycleState.ERROR)
            self._bus.publish(EntryUpdated(entry_id=entry.id, state=entry.state.value))
            self._bus.notify("error", "Upload failed", f"{entry.source_file.filename}: {exc}")
            return CommitResult(CommitOutcome.FAILED, message=str(exc))

        entry.transition(LifecycleState.UPLOADED)
        self._bus.publish(EntryUpdated(entry_id=entry.id, state=entry.state.value))
        self._bus.notify("success", "Document uploaded", f"{slot.name} saved successfully")
        self._bus.publish(
            DocumentCommitted(entry_id=entry.id, document_type_id=slot.id, document_id=document.id)
        )
        self._sync.commit_succeeded(slot.id)
        Log.info(f"Committed entry {entry.id} as document {document.id} ({slot.name})")
        return CommitResult(CommitOutcome.COMMITTED, document=document)

    def close(self) -> None:
        self._storage.close()

    async def _persist(
        self,
        entry: QueuedFile,
        slot: DocumentTypeSlot,
        existing: LeadDocumentRecord | None,
    ) -> LeadDocumentRecord:
        if existing is not None:
            await asyncio.to_thread(self._remove_existing, existing)

        now = self._clock()
        path = object_path(self._lead_id, slot.id, now, entry.source_file.extension)
        await asyncio.to_thread(
            self._storage.put,
            path,
            entry.source_file.content,
            content_type=entry.source_file.mime_type,
            overwrite=True,
        )
        return await asyncio.to_thread(self._documents_repo.insert, self._build_row(entry, slot, path, now))

    def _remove_existing(self, existing: LeadDocumentRecord) -> None:
        try:
            self._documents_repo.delete(existing.id)
        except DocumentNotFoundError:
            Log.warning(f"Document {existing.id} was already gone before replacement")
        self._storage.delete(existing.file_path)
        Log.info(f"Replaced existing document {existing.id} for type {existing.document_type_id}")

    def _build_row(
        self,
        entry: QueuedFile,
        slot: DocumentTypeSlot,
        path: str,
        now: datetime,
    ) -> NewLeadDocument:
        row = NewLeadDocument(
            lead_id=self._lead_id,
            document_type_id=slot.id,
            original_filename=entry.source_file.filename,
            stored_filename=path,
            file_path=path,
            file_size=entry.source_file.size,
            mime_type=entry.source_file.mime_type,
            verification_status=self._profile.verification_status,
            uploaded_by=self._profile.role,
        )
        classification = entry.classification
        if classification is not None:
            row.ai_detected_type = classification.detected_type
            row.ai_confidence_score = classification.confidence
            row.ai_quality_assessment = classification.quality
            row.ai_validation_notes = classification.notes or None
            row.ai_validated_at = now
        return row
