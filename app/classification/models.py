from dataclasses import dataclass, field

QUALITY_LEVELS = ("good", "acceptable", "poor", "unreadable")
OWNERS = ("student", "co_applicant", "collateral", "unknown")


@dataclass(frozen=True)
class DocumentPayload:
    """What a classifier needs to know about a file."""

    filename: str
    content: bytes
    mime_type: str


@dataclass(frozen=True)
class ClassificationResult:
    """Output of the document classifier."""

    detected_type: str
    detected_type_label: str
    detected_category: str
    detected_category_label: str
    detected_owner: str = "unknown"
    confidence: int = 0
    quality: str = "acceptable"
    is_document: bool = True
    detected_name: str | None = None
    red_flags: frozenset[str] = field(default_factory=frozenset)
    notes: str = ""
