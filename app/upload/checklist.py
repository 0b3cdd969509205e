"""Checklist status of each document type, derived from committed lead documents."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from app.database.models import LeadDocumentRecord
from app.upload.models import DocumentTypeSlot


class SlotStatus(str, Enum):
    NOT_UPLOADED = "not_uploaded"
    UPLOADED = "uploaded"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


_REJECTED_STATUSES = frozenset({"rejected", "resubmission_required"})

ADMIN_STATUS_LABELS: dict[SlotStatus, str] = {
    SlotStatus.VERIFIED: "Verified",
    SlotStatus.UPLOADED: "Uploaded",
    SlotStatus.PENDING: "Pending Review",
    SlotStatus.REJECTED: "Need Attention",
    SlotStatus.NOT_UPLOADED: "Not Uploaded",
}

PARTNER_STATUS_LABELS: dict[SlotStatus, str] = {
    SlotStatus.VERIFIED: "Verified",
    SlotStatus.UPLOADED: "Uploaded",
    SlotStatus.PENDING: "Uploaded",
    SlotStatus.REJECTED: "Need Attention",
    SlotStatus.NOT_UPLOADED: "Pending",
}


def status_labels(role: str) -> dict[SlotStatus, str]:
    return PARTNER_STATUS_LABELS if role == "partner" else ADMIN_STATUS_LABELS


def document_status(document: LeadDocumentRecord | None) -> SlotStatus:
    if document is None:
        return SlotStatus.NOT_UPLOADED
    verification = (document.verification_status or "").lower()
    if verification == "verified":
        return SlotStatus.VERIFIED
    if verification in _REJECTED_STATUSES:
        return SlotStatus.REJECTED
    if verification == "uploaded":
        return SlotStatus.UPLOADED
    return SlotStatus.PENDING


def documents_by_slot(documents: Iterable[LeadDocumentRecord]) -> dict[str, LeadDocumentRecord]:
    """Index committed documents by document type; the latest row wins."""
    indexed: dict[str, LeadDocumentRecord] = {}
    for document in documents:
        indexed[document.document_type_id] = document
    return indexed


def can_upload(status: SlotStatus) -> bool:
    """A slot accepts a new upload when it is empty or was sent back."""
    return status in (SlotStatus.NOT_UPLOADED, SlotStatus.REJECTED)


@dataclass(frozen=True)
class ChecklistItem:
    slot: DocumentTypeSlot
    status: SlotStatus
    highlighted: bool = False
    label: str = ""


def build_checklist(
    slots: Sequence[DocumentTypeSlot],
    documents: dict[str, LeadDocumentRecord],
    highlighted_slot_id: str | None = None,
    role: str = "admin",
) -> list[ChecklistItem]:
    labels = status_labels(role)
    statuses = [document_status(documents.get(slot.id)) for slot in slots]
    return [
        ChecklistItem(
            slot=slot,
            status=status,
            highlighted=slot.id == highlighted_slot_id,
            label=labels[status],
        )
        for slot, status in zip(slots, statuses)
    ]
