"""Per-entry status text shown next to each queued file."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from app.upload.matching import NameMatch
from app.upload.models import LifecycleState, QueuedFile

HIGH_CONFIDENCE = 70
MEDIUM_CONFIDENCE = 50

QUALITY_MESSAGES: dict[str, tuple[str, str]] = {
    "good": ("Document looks great!", "success"),
    "acceptable": ("Document accepted", "success"),
    "poor": ("Image quality is low - consider re-uploading", "warning"),
    "unreadable": ("Document is unclear - please try a clearer photo", "error"),
}

RED_FLAG_MESSAGES: dict[str, str] = {
    "blurry": "Image is blurry",
    "partial": "Part of the document is cut off",
    "screenshot": "Please upload the original document",
    "selfie": "This appears to be a selfie",
    "not_a_document": "This does not look like a document",
    "edited": "The document appears to be edited",
    "unsupported_format": "Unsupported file format",
}


def confidence_band(confidence: int) -> str:
    if confidence >= HIGH_CONFIDENCE:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def red_flag_messages(flags: Iterable[str]) -> list[str]:
    return [RED_FLAG_MESSAGES.get(flag, flag.replace("_", " ")) for flag in sorted(flags)]


@dataclass(frozen=True)
class EntryView:
    entry_id: str
    filename: str
    state: str
    headline: str
    tone: str
    details: list[str] = field(default_factory=list)
    can_approve: bool = False
    can_remove: bool = False


def describe_entry(entry: QueuedFile, name_match: NameMatch | None = None) -> EntryView:
    """Build the status block of one queue entry.

    Every terminal state gets its own headline and tone so that nothing
    fails silently.
    """
    details: list[str] = []
    can_approve = False

    if entry.state is LifecycleState.CLASSIFYING:
        headline, tone = "AI is analyzing...", "muted"
    elif entry.state is LifecycleState.UPLOADING:
        headline, tone = "Uploading...", "muted"
    elif entry.state is LifecycleState.UPLOADED:
        headline, tone = "Uploaded", "success"
    elif entry.state is LifecycleState.ERROR:
        headline, tone = entry.error or "Upload failed", "error"
        details.append("Remove the file and add it again to retry")
    elif entry.pending_confirmation:
        headline, tone = "Admin override required", "warning"
        details.append(entry.pending_confirmation)
    else:
        headline, tone, details = _describe_classified(entry, name_match)
        can_approve = entry.target_document_type_id is not None

    return EntryView(
        entry_id=entry.id,
        filename=entry.source_file.filename,
        state=entry.state.value,
        headline=headline,
        tone=tone,
        details=details,
        can_approve=can_approve,
        can_remove=not entry.is_busy,
    )


def _describe_classified(
    entry: QueuedFile,
    name_match: NameMatch | None,
) -> tuple[str, str, list[str]]:
    classification = entry.classification
    details: list[str] = []

    if classification is None or classification.confidence == 0:
        headline, tone = "Please select document type", "warning"
        if classification is not None and classification.notes:
            details.append(classification.notes)
    else:
        headline = f"{classification.detected_type_label} ({classification.confidence}% confidence)"
        tone = "success" if confidence_band(classification.confidence) == "high" else "warning"
        if classification.confidence < HIGH_CONFIDENCE:
            details.append("Low confidence - please verify type")

    if classification is not None:
        if classification.quality not in ("good", "acceptable"):
            details.append(QUALITY_MESSAGES[classification.quality][0])
        details.extend(red_flag_messages(classification.red_flags))

    if name_match is not None and name_match.status == "match":
        details.append(name_match.message)
    elif name_match is not None and name_match.is_mismatch:
        tone = "warning"
        details.append("Name mismatch detected")
        if name_match.expected:
            details.append(name_match.expected)

    return headline, tone, details


@dataclass(frozen=True)
class QueueSummary:
    analyzing: int
    ready: int
    uploading: int
    failed: int
    total: int


def summarize(entries: Iterable[QueuedFile]) -> QueueSummary:
    items = list(entries)

    def count(state: LifecycleState) -> int:
        return sum(1 for item in items if item.state is state)

    return QueueSummary(
        analyzing=count(LifecycleState.CLASSIFYING),
        ready=count(LifecycleState.CLASSIFIED),
        uploading=count(LifecycleState.UPLOADING),
        failed=count(LifecycleState.ERROR),
        total=len(items),
    )
