"""Fuzzy matching of AI labels to checklist slots and of detected names to applicants."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from app.upload.models import DocumentTypeSlot

PLACEHOLDER_NAMES = frozenset({"co-applicant", "coapplicant", "co applicant", "tbd", "na", "n/a", ""})
MIN_NAME_PART_LENGTH = 3

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_label(text: str) -> str:
    """Lowercase and drop everything that is not a letter or digit."""
    return _NON_ALNUM.sub("", text.lower())


def labels_match(first: str, second: str) -> bool:
    """True when either normalized label contains the other.

    A label that normalizes to nothing matches nothing.
    """
    a = normalize_label(first)
    b = normalize_label(second)
    if not a or not b:
        return False
    return a in b or b in a


def find_matching_slot(
    detected_type: str,
    slots: Iterable[DocumentTypeSlot],
) -> DocumentTypeSlot | None:
    """First slot whose name fuzzy-matches the detected type, in checklist order."""
    for slot in slots:
        if labels_match(slot.name, detected_type):
            return slot
    return None


@dataclass(frozen=True)
class NameMatch:
    status: str  # "none" | "match" | "mismatch"
    message: str = ""
    matched_role: str | None = None
    expected: str | None = None

    @property
    def is_mismatch(self) -> bool:
        return self.status == "mismatch"


def is_placeholder_name(name: str | None) -> bool:
    return (name or "").strip().lower() in PLACEHOLDER_NAMES


def _name_parts(name: str) -> list[str]:
    return [part for part in name.split() if len(part) >= MIN_NAME_PART_LENGTH]


def _count_matches(detected: list[str], target: list[str]) -> int:
    if not target:
        return 0
    return sum(1 for part in detected if any(tp in part or part in tp for tp in target))


def _ratio(matches: int, detected: list[str], target: list[str]) -> float:
    if not target:
        return 0.0
    return matches / max(len(detected), len(target))


def match_person_name(
    detected_name: str | None,
    applicant_name: str | None,
    co_applicant_name: str | None,
) -> NameMatch:
    """Decide whether a name read off a document belongs to the applicant or co-applicant.

    Tokens shorter than three characters are ignored. The co-applicant wins
    only with a strictly better overlap ratio than the applicant; a
    placeholder co-applicant name ("TBD", "Co-Applicant", ...) never matches.
    """
    if not detected_name:
        return NameMatch(status="none")

    detected_parts = _name_parts(detected_name.strip().lower())
    applicant_parts = _name_parts((applicant_name or "").strip().lower())
    co_applicant_parts = (
        [] if is_placeholder_name(co_applicant_name)
        else _name_parts((co_applicant_name or "").strip().lower())
    )

    applicant_hits = _count_matches(detected_parts, applicant_parts)
    co_applicant_hits = _count_matches(detected_parts, co_applicant_parts)
    applicant_ratio = _ratio(applicant_hits, detected_parts, applicant_parts)
    co_applicant_ratio = _ratio(co_applicant_hits, detected_parts, co_applicant_parts)

    if co_applicant_ratio > applicant_ratio and co_applicant_hits > 0:
        return NameMatch(
            status="match",
            message=f"Matches: {co_applicant_name} (Co-Applicant)",
            matched_role="co_applicant",
        )
    if applicant_hits > 0 and applicant_parts:
        return NameMatch(
            status="match",
            message=f"Matches: {applicant_name} (Student)",
            matched_role="student",
        )

    expected = expected_names(applicant_name, co_applicant_name)
    return NameMatch(
        status="mismatch",
        message=f'Document shows "{detected_name}"',
        expected=f"Expected: {expected}" if expected else None,
    )


def expected_names(applicant_name: str | None, co_applicant_name: str | None) -> str:
    """Human list of the names a document may carry, placeholders dropped."""
    names = [n for n in (applicant_name, co_applicant_name) if n and not is_placeholder_name(n)]
    return " or ".join(names)
