import mimetypes
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePath

from app.classification.models import ClassificationResult, DocumentPayload
from app.database.models import DocumentTypeRecord
from app.upload.exceptions import InvalidTransitionError


class LifecycleState(str, Enum):
    CLASSIFYING = "classifying"
    CLASSIFIED = "classified"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    ERROR = "error"


# Leaving "error" or "uploaded" means leaving the queue.
_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.CLASSIFYING: frozenset({LifecycleState.CLASSIFIED}),
    LifecycleState.CLASSIFIED: frozenset({LifecycleState.UPLOADING}),
    LifecycleState.UPLOADING: frozenset({LifecycleState.UPLOADED, LifecycleState.ERROR}),
    LifecycleState.UPLOADED: frozenset(),
    LifecycleState.ERROR: frozenset(),
}

_CLASSIFICATION_STATES = frozenset(
    {LifecycleState.CLASSIFIED, LifecycleState.UPLOADING, LifecycleState.UPLOADED}
)


@dataclass(frozen=True)
class SourceFile:
    """A dropped file. Immutable once queued."""

    filename: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        """Lowercase extension without the dot, "" when the name has none."""
        return PurePath(self.filename).suffix.lstrip(".").lower()

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def to_payload(self) -> DocumentPayload:
        return DocumentPayload(filename=self.filename, content=self.content, mime_type=self.mime_type)

    @classmethod
    def from_path(cls, path: Path) -> "SourceFile":
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            mime_type=mime_type or "application/octet-stream",
        )


@dataclass(frozen=True)
class DocumentTypeSlot:
    """A checklist item a document can fulfil, e.g. "PAN Copy"."""

    id: str
    name: str
    category: str
    required: bool = False
    description: str | None = None

    @classmethod
    def from_record(cls, record: DocumentTypeRecord) -> "DocumentTypeSlot":
        return cls(
            id=record.id,
            name=record.name,
            category=record.category,
            required=record.required,
            description=record.description,
        )


@dataclass(frozen=True)
class PreviewHandle:
    """Transient on-disk copy of an image used for thumbnails."""

    id: str
    path: Path


@dataclass
class QueuedFile:
    """One file's journey from intake to commit or discard."""

    source_file: SourceFile
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: LifecycleState = LifecycleState.CLASSIFYING
    preview: PreviewHandle | None = None
    classification: ClassificationResult | None = None
    target_document_type_id: str | None = None
    target_category: str | None = None
    pinned_document_type_id: str | None = None
    pending_confirmation: str | None = None
    error: str | None = None

    @property
    def is_busy(self) -> bool:
        """Work is in flight; the entry cannot be removed."""
        return self.state in (LifecycleState.CLASSIFYING, LifecycleState.UPLOADING)

    def transition(self, new_state: LifecycleState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Queue entry {self.id} cannot move from {self.state.value} to {new_state.value}"
            )
        self.state = new_state

    def attach_classification(self, result: ClassificationResult) -> None:
        if self.state not in _CLASSIFICATION_STATES:
            raise InvalidTransitionError(
                f"Queue entry {self.id} cannot hold a classification while {self.state.value}"
            )
        self.classification = result
        self.target_category = result.detected_category

    def retarget(self, slot: DocumentTypeSlot | None) -> None:
        """Point the entry at one checklist slot (or none)."""
        if slot is None:
            self.target_document_type_id = None
            return
        self.target_document_type_id = slot.id
        self.target_category = slot.category


@dataclass(frozen=True)
class UploaderProfile:
    """Who is uploading and what their uploads look like in lead_documents."""

    role: str
    verification_status: str
    allowed_categories: frozenset[str] | None = None

    def can_select(self, slot: DocumentTypeSlot) -> bool:
        return self.allowed_categories is None or slot.category in self.allowed_categories


UPLOADER_PROFILES: dict[str, UploaderProfile] = {
    "admin": UploaderProfile(role="admin", verification_status="uploaded"),
    "partner": UploaderProfile(role="partner", verification_status="uploaded"),
    # Student uploads wait for an admin decision.
    "student": UploaderProfile(
        role="student",
        verification_status="pending",
        allowed_categories=frozenset({"KYC", "Academic", "Financial", "Co-Applicant"}),
    ),
}


def uploader_profile(role: str) -> UploaderProfile:
    try:
        return UPLOADER_PROFILES[role.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown uploader role '{role}'. Choose from: {sorted(UPLOADER_PROFILES)}"
        ) from None
