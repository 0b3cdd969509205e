from dataclasses import dataclass

from app.upload.matching import expected_names, labels_match, match_person_name, normalize_label
from app.upload.models import DocumentTypeSlot, QueuedFile

DEFAULT_CONFIDENCE_THRESHOLD = 70


@dataclass(frozen=True)
class MismatchReport:
    name_mismatch: bool = False
    type_mismatch: bool = False
    message: str = ""

    @property
    def has_issue(self) -> bool:
        return self.name_mismatch or self.type_mismatch


class MismatchDetector:
    """Flags documents that seem to belong to someone else or to another slot."""

    def __init__(
        self,
        applicant_name: str | None,
        co_applicant_name: str | None,
        confidence_threshold: int = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._applicant_name = applicant_name
        self._co_applicant_name = co_applicant_name
        self._threshold = confidence_threshold

    def check(self, entry: QueuedFile, slot: DocumentTypeSlot | None) -> MismatchReport:
        classification = entry.classification
        if classification is None:
            return MismatchReport()

        messages: list[str] = []
        name_match = match_person_name(
            classification.detected_name, self._applicant_name, self._co_applicant_name
        )
        if name_match.is_mismatch:
            expected = expected_names(self._applicant_name, self._co_applicant_name) or "the applicant"
            messages.append(
                f'This document appears to belong to "{classification.detected_name}" '
                f"but the application is for {expected}. Upload anyway?"
            )

        type_mismatch = (
            slot is not None
            and bool(normalize_label(classification.detected_type_label))
            and classification.confidence >= self._threshold
            and not labels_match(classification.detected_type_label, slot.name)
        )
        if type_mismatch and slot is not None:
            messages.append(
                f'AI detected this as "{classification.detected_type_label}" but you selected '
                f'"{slot.name}". Continue with your selection?'
            )

        return MismatchReport(
            name_mismatch=name_match.is_mismatch,
            type_mismatch=type_mismatch,
            message=" ".join(messages),
        )
