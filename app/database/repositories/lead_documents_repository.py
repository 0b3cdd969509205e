from typing import Any

import psycopg
from psycopg.rows import dict_row

from app.database.connection import get_connection
from app.database.exceptions import DocumentNotFoundError, MetadataStoreError
from app.database.models import LeadDocumentRecord, NewLeadDocument

_COLUMNS = """
    id, lead_id, document_type_id, original_filename, stored_filename,
    file_path, file_size, mime_type, upload_status, verification_status,
    uploaded_by, ai_detected_type, ai_confidence_score, ai_quality_assessment,
    ai_validation_notes, ai_validated_at, created_at
"""


class LeadDocumentsRepository:
    """Database operations for the lead_documents table.

    Rows are insert-only: a replacement is a delete followed by an insert,
    never an UPDATE of the document columns.
    """

    def list_for_lead(self, lead_id: str) -> list[LeadDocumentRecord]:
        """Return every committed document of a lead, oldest first."""
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        SELECT {_COLUMNS}
                        FROM lead_documents
                        WHERE lead_id = %s
                        ORDER BY created_at
                        """,
                        (lead_id,),
                    )
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            raise MetadataStoreError(f"Failed to list documents for lead {lead_id}: {exc}") from exc

        return [self._to_record(row) for row in rows]

    def find_for_slot(self, lead_id: str, document_type_id: str) -> LeadDocumentRecord | None:
        """Return the committed document for a (lead, document type) pair, if any."""
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        SELECT {_COLUMNS}
                        FROM lead_documents
                        WHERE lead_id = %s AND document_type_id = %s
                        ORDER BY created_at DESC
                        LIMIT 1
                        """,
                        (lead_id, document_type_id),
                    )
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise MetadataStoreError(
                f"Failed to look up document type {document_type_id} for lead {lead_id}: {exc}"
            ) from exc

        if row is None:
            return None
        return self._to_record(row)

    def insert(self, document: NewLeadDocument) -> LeadDocumentRecord:
        """Insert a metadata row and return it with its generated id.

        Raises:
            MetadataStoreError: if the insert fails.
        """
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO lead_documents (
                            lead_id, document_type_id, original_filename,
                            stored_filename, file_path, file_size, mime_type,
                            upload_status, verification_status, uploaded_by,
                            ai_detected_type, ai_confidence_score,
                            ai_quality_assessment, ai_validation_notes,
                            ai_validated_at
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        RETURNING {_COLUMNS}
                        """,
                        (
                            document.lead_id,
                            document.document_type_id,
                            document.original_filename,
                            document.stored_filename,
                            document.file_path,
                            document.file_size,
                            document.mime_type,
                            document.upload_status,
                            document.verification_status,
                            document.uploaded_by,
                            document.ai_detected_type,
                            document.ai_confidence_score,
                            document.ai_quality_assessment,
                            document.ai_validation_notes,
                            document.ai_validated_at,
                        ),
                    )
                    row = cur.fetchone()
                conn.commit()
        except psycopg.Error as exc:
            raise MetadataStoreError(f"Failed to insert lead document: {exc}") from exc

        if row is None:
            raise MetadataStoreError("Insert into lead_documents returned no row")
        return self._to_record(row)

    def delete(self, document_id: str) -> None:
        """Delete a metadata row.

        Raises:
            DocumentNotFoundError: if no row with this id exists.
            MetadataStoreError: if the delete fails.
        """
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM lead_documents WHERE id = %s", (document_id,))
                    deleted = cur.rowcount
                conn.commit()
        except psycopg.Error as exc:
            raise MetadataStoreError(f"Failed to delete lead document {document_id}: {exc}") from exc

        if deleted == 0:
            raise DocumentNotFoundError(f"Lead document {document_id} not found")

    @staticmethod
    def _to_record(row: dict[str, Any]) -> LeadDocumentRecord:
        return LeadDocumentRecord(
            id=str(row["id"]),
            lead_id=str(row["lead_id"]),
            document_type_id=str(row["document_type_id"]),
            original_filename=row["original_filename"],
            stored_filename=row["stored_filename"],
            file_path=row["file_path"],
            file_size=row["file_size"],
            mime_type=row["mime_type"],
            upload_status=row["upload_status"],
            verification_status=row["verification_status"],
            uploaded_by=row["uploaded_by"],
            ai_detected_type=row["ai_detected_type"],
            ai_confidence_score=row["ai_confidence_score"],
            ai_quality_assessment=row["ai_quality_assessment"],
            ai_validation_notes=row["ai_validation_notes"],
            ai_validated_at=row["ai_validated_at"],
            created_at=row["created_at"],
        )
