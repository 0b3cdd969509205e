import asyncio
from dataclasses import replace
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from app.classification.classifier import Classifier
from app.classification.example_client_adapter import ExampleClientAdapter
from app.config.settings import Settings
from app.database.models import LeadDocumentRecord
from app.database.repositories.lead_documents_repository import LeadDocumentsRepository
from app.storage.exceptions import StorageError
from app.storage.local_adapter import LocalObjectStorage
from app.upload.checklist import SlotStatus
from app.upload.commit import CommitOutcome
from app.upload.events import EntryRemoved, SlotHighlighted
from app.upload.exceptions import EntryBusyError, QueueEntryNotFoundError, UnknownDocumentTypeError
from app.upload.models import DocumentTypeSlot, LifecycleState, SourceFile
from app.upload.service import SmartUpload, build_smart_upload


def _make_record(document_id: str, document_type_id: str, verification_status: str = "uploaded") -> LeadDocumentRecord:
    return LeadDocumentRecord(
        id=document_id,
        lead_id="lead-1",
        document_type_id=document_type_id,
        original_filename="old.png",
        stored_filename=f"lead-1/{document_type_id}/1.png",
        file_path=f"lead-1/{document_type_id}/1.png",
        file_size=3,
        mime_type="image/png",
        verification_status=verification_status,
    )


def _image(name: str) -> SourceFile:
    return SourceFile(filename=name, content=b"png-bytes", mime_type="image/png")


def _make_upload(
    tmp_path: Path,
    slots: list[DocumentTypeSlot],
    existing: list[LeadDocumentRecord] | None = None,
    role: str = "admin",
    mismatch_threshold: int = 70,
) -> tuple[SmartUpload, MagicMock, LocalObjectStorage]:
    repo = MagicMock(spec=LeadDocumentsRepository)
    repo.list_for_lead.return_value = existing or []
    inserted: list[LeadDocumentRecord] = []

    def _insert(row):  # type: ignore[no-untyped-def]
        record = replace(
            _make_record(f"doc-{len(inserted) + 1}", row.document_type_id, row.verification_status),
            file_path=row.file_path,
            stored_filename=row.stored_filename,
        )
        inserted.append(record)
        return record

    repo.insert.side_effect = _insert
    repo.find_for_slot.return_value = None
    storage = LocalObjectStorage(root=tmp_path / "objects")
    settings = Settings(
        uploader_role=role,
        highlight_timeout_seconds=0.05,
        auto_remove_delay_seconds=0.05,
        type_mismatch_confidence_threshold=mismatch_threshold,
    )
    with patch("app.upload.service.LeadDocumentsRepository", return_value=repo):
        upload = build_smart_upload(
            settings,
            "lead-1",
            slots=slots,
            storage=storage,
            classifier=Classifier(client=ExampleClientAdapter(), model="example"),
            applicant_name="Rahul Sharma",
            co_applicant_name="Meena Sharma",
        )
    return upload, repo, storage


class TestSmartUploadFlow:
    @pytest.mark.asyncio
    async def test_drop_classify_approve(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        upload, repo, storage = _make_upload(tmp_path, slots)
        await upload.refresh_documents()

        report = upload.add_files([_image("bank_statement.png")])
        await upload.wait_idle()
        entry = report.accepted[0]

        assert entry.state is LifecycleState.CLASSIFIED
        assert entry.target_document_type_id == "dt-bank"
        assert upload.summary().ready == 1

        result = await upload.approve(entry.id)

        assert result.outcome is CommitOutcome.COMMITTED
        row = repo.insert.call_args.args[0]
        assert storage.read(row.file_path) == b"png-bytes"
        checklist = {item.slot.id: item.status for item in upload.checklist()}
        assert checklist["dt-bank"] is SlotStatus.UPLOADED
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_uploaded_entry_is_auto_removed(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        upload, _repo, _storage = _make_upload(tmp_path, slots)
        removed: list[EntryRemoved] = []
        upload.bus.subscribe(EntryRemoved, removed.append)
        entry = upload.add_files([_image("passport.png")]).accepted[0]
        await upload.wait_idle()

        await upload.approve(entry.id)
        assert entry in upload.entries
        await asyncio.sleep(0.1)

        assert entry not in upload.entries
        assert removed == [EntryRemoved(entry_id=entry.id)]
        assert entry.preview is None
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_pinned_slot_wins_and_is_cleared_on_commit(
        self, tmp_path: Path, slots: list[DocumentTypeSlot]
    ) -> None:
        upload, _repo, _storage = _make_upload(tmp_path, slots)
        await upload.refresh_documents()

        assert upload.select_slot("dt-deed")
        entry = upload.add_files([_image("bank_statement.png")]).accepted[0]
        await upload.wait_idle()

        assert entry.target_document_type_id == "dt-deed"
        assert upload.sync.preferred_target == "dt-deed"
        result = await upload.confirm_override(entry.id)
        assert result.outcome is CommitOutcome.COMMITTED
        assert upload.sync.preferred_target is None
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_filled_slot_cannot_be_pinned(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        upload, _repo, _storage = _make_upload(tmp_path, slots, existing=[_make_record("d1", "dt-pan", "verified")])
        await upload.refresh_documents()

        assert not upload.select_slot("dt-pan")
        assert upload.sync.preferred_target is None
        with pytest.raises(UnknownDocumentTypeError):
            upload.select_slot("dt-nope")
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_replaces_existing_document(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        old = _make_record("d-old", "dt-passport")
        upload, repo, storage = _make_upload(tmp_path, slots, existing=[old])
        storage.put(old.file_path, b"old", content_type="image/png")
        await upload.refresh_documents()
        entry = upload.add_files([_image("passport.png")]).accepted[0]
        await upload.wait_idle()

        result = await upload.approve(entry.id)

        assert result.outcome is CommitOutcome.COMMITTED
        repo.delete.assert_called_once_with("d-old")
        with pytest.raises(FileNotFoundError):
            storage.read(old.file_path)
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_concurrent_approvals_for_one_slot_replace_in_turn(
        self, tmp_path: Path, slots: list[DocumentTypeSlot]
    ) -> None:
        upload, repo, storage = _make_upload(tmp_path, slots)
        await upload.refresh_documents()
        first, second = upload.add_files([_image("passport.png"), _image("passport.png")]).accepted
        await upload.wait_idle()
        assert first.target_document_type_id == second.target_document_type_id == "dt-passport"

        results = await asyncio.gather(upload.approve(first.id), upload.approve(second.id))

        assert [r.outcome for r in results] == [CommitOutcome.COMMITTED, CommitOutcome.COMMITTED]
        first_doc, second_doc = results[0].document, results[1].document
        assert first_doc is not None and second_doc is not None
        assert repo.insert.call_count == 2
        repo.delete.assert_called_once_with(first_doc.id)
        assert storage.read(second_doc.file_path) == b"png-bytes"
        checklist = {item.slot.id: item.status for item in upload.checklist()}
        assert checklist["dt-passport"] is SlotStatus.UPLOADED
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_failed_replace_reloads_slot(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        old = _make_record("d-old", "dt-passport")
        upload, repo, storage = _make_upload(tmp_path, slots, existing=[old])
        await upload.refresh_documents()
        entry = upload.add_files([_image("passport.png")]).accepted[0]
        await upload.wait_idle()

        with patch.object(storage, "put", side_effect=StorageError("disk full")):
            result = await upload.approve(entry.id)

        assert result.outcome is CommitOutcome.FAILED
        assert entry.state is LifecycleState.ERROR
        repo.delete.assert_called_once_with("d-old")
        repo.find_for_slot.assert_called_once_with("lead-1", "dt-passport")
        checklist = {item.slot.id: item.status for item in upload.checklist()}
        assert checklist["dt-passport"] is SlotStatus.NOT_UPLOADED
        assert upload.select_slot("dt-passport")
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_failed_first_upload_skips_reload(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        upload, repo, storage = _make_upload(tmp_path, slots)
        entry = upload.add_files([_image("passport.png")]).accepted[0]
        await upload.wait_idle()

        with patch.object(storage, "put", side_effect=StorageError("disk full")):
            result = await upload.approve(entry.id)

        assert result.outcome is CommitOutcome.FAILED
        repo.find_for_slot.assert_not_called()
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_type_mismatch_then_cancel_leaves_entry_untouched(
        self, tmp_path: Path, slots: list[DocumentTypeSlot]
    ) -> None:
        upload, repo, _storage = _make_upload(tmp_path, slots, mismatch_threshold=50)
        entry = upload.add_files([_image("passport.png")]).accepted[0]
        await upload.wait_idle()
        upload.change_target(entry.id, "dt-pan")

        result = await upload.approve(entry.id)
        assert result.outcome is CommitOutcome.NEEDS_CONFIRMATION
        assert entry.pending_confirmation is not None

        upload.cancel_override(entry.id)

        assert entry.pending_confirmation is None
        assert entry.state is LifecycleState.CLASSIFIED
        assert entry.target_document_type_id == "dt-pan"
        repo.insert.assert_not_called()
        repo.delete.assert_not_called()

        result = await upload.confirm_override(entry.id)
        assert result.outcome is CommitOutcome.COMMITTED
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_change_target_highlights_slot(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        upload, _repo, _storage = _make_upload(tmp_path, slots)
        highlighted: list[SlotHighlighted] = []
        upload.bus.subscribe(SlotHighlighted, highlighted.append)
        entry = upload.add_files([_image("unknown.png")]).accepted[0]
        await upload.wait_idle()
        assert entry.target_document_type_id is None

        upload.change_target(entry.id, "dt-pan")

        assert entry.target_document_type_id == "dt-pan"
        assert highlighted == [SlotHighlighted("dt-pan")]
        with pytest.raises(UnknownDocumentTypeError):
            upload.change_target(entry.id, "dt-missing")
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_approve_without_target(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        upload, repo, _storage = _make_upload(tmp_path, slots)
        entry = upload.add_files([_image("unknown.png")]).accepted[0]
        await upload.wait_idle()

        result = await upload.approve(entry.id)

        assert result.outcome is CommitOutcome.MISSING_TARGET
        repo.insert.assert_not_called()
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_remove_rules(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        upload, _repo, _storage = _make_upload(tmp_path, slots)
        removed: list[EntryRemoved] = []
        upload.bus.subscribe(EntryRemoved, removed.append)
        entry = upload.add_files([_image("pan_card.png")]).accepted[0]

        with pytest.raises(EntryBusyError):
            upload.remove(entry.id)
        await upload.wait_idle()

        handle = entry.preview
        assert handle is not None
        upload.remove(entry.id)

        assert not handle.path.exists()
        assert entry not in upload.entries
        assert removed == [EntryRemoved(entry_id=entry.id)]
        with pytest.raises(QueueEntryNotFoundError):
            upload.remove(entry.id)
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_upload_all_commits_resolved_entries(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        upload, repo, _storage = _make_upload(tmp_path, slots)
        upload.add_files([_image("pan_card.png"), _image("passport.png"), _image("selfie.png")])
        await upload.wait_idle()

        results = await upload.upload_all()

        assert len(results) == 2
        assert all(r.outcome is CommitOutcome.COMMITTED for r in results.values())
        assert repo.insert.call_count == 2
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_student_only_sees_allowed_categories(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        upload, _repo, _storage = _make_upload(tmp_path, slots, role="student")
        assert [slot.id for slot in upload.slots] == ["dt-pan", "dt-passport", "dt-bank"]
        await upload.aclose()

    @pytest.mark.asyncio
    async def test_describe_uses_applicant_names(self, tmp_path: Path, slots: list[DocumentTypeSlot]) -> None:
        upload, _repo, _storage = _make_upload(tmp_path, slots)
        entry = upload.add_files([_image("pan_card.png")]).accepted[0]
        await upload.wait_idle()

        view = upload.describe(entry.id)

        assert view.headline == "PAN Card (60% confidence)"
        assert "Low confidence - please verify type" in view.details
        await upload.aclose()
