import psycopg
from psycopg.rows import dict_row

from app.database.connection import get_connection
from app.database.exceptions import MetadataStoreError
from app.database.models import DocumentTypeRecord


class DocumentTypesRepository:
    """Read access to the document_types checklist catalog."""

    def list_active(self) -> list[DocumentTypeRecord]:
        """Return active document types ordered for checklist display."""
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        """
                        SELECT id, name, category, required, description
                        FROM document_types
                        WHERE is_active = TRUE
                        ORDER BY category, display_order, name
                        """
                    )
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            raise MetadataStoreError(f"Failed to load document types: {exc}") from exc

        return [
            DocumentTypeRecord(
                id=str(row["id"]),
                name=row["name"],
                category=row["category"],
                required=bool(row["required"]),
                description=row["description"],
            )
            for row in rows
        ]
