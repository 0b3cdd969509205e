from dataclasses import dataclass
from datetime import datetime


@dataclass
class LeadDocumentRecord:
    """Represents a row from the lead_documents table."""

    id: str
    lead_id: str
    document_type_id: str
    original_filename: str
    stored_filename: str
    file_path: str
    file_size: int
    mime_type: str
    upload_status: str = "uploaded"
    verification_status: str = "uploaded"
    uploaded_by: str | None = None
    ai_detected_type: str | None = None
    ai_confidence_score: int | None = None
    ai_quality_assessment: str | None = None
    ai_validation_notes: str | None = None
    ai_validated_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class NewLeadDocument:
    """Column values for a lead_documents insert (id is generated by the DB)."""

    lead_id: str
    document_type_id: str
    original_filename: str
    stored_filename: str
    file_path: str
    file_size: int
    mime_type: str
    verification_status: str
    uploaded_by: str
    upload_status: str = "uploaded"
    ai_detected_type: str | None = None
    ai_confidence_score: int | None = None
    ai_quality_assessment: str | None = None
    ai_validation_notes: str | None = None
    ai_validated_at: datetime | None = None


@dataclass
class DocumentTypeRecord:
    """Represents a row from the document_types table."""

    id: str
    name: str
    category: str
    required: bool = False
    description: str | None = None
