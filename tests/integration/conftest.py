import os
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from app.config.settings import Settings
from app.database.connection import close_pool, get_connection, init_pool
from app.database.models import DocumentTypeRecord
from app.database.repositories.document_types_repository import DocumentTypesRepository


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "leads_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute("SELECT 1 FROM lead_documents LIMIT 1")
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to a database with the lead_documents schema"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def document_type(integration_pool: None) -> DocumentTypeRecord:
    types = DocumentTypesRepository().list_active()
    if not types:
        pytest.skip("No active document_types rows in DB for integration test setup")
    return types[0]


@pytest.fixture
def lead_id(db_conn: psycopg.Connection[Any]) -> str:
    with db_conn.cursor() as cur:
        cur.execute("SELECT id FROM leads ORDER BY created_at DESC LIMIT 1")
        row = cur.fetchone()
    if row is None:
        pytest.skip("No leads rows in DB for integration test setup")
    return str(row[0])


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    """Collects lead_documents ids to delete after the test."""
    document_ids: list[str] = []
    yield document_ids
    if not document_ids:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for document_id in document_ids:
                cur.execute("DELETE FROM lead_documents WHERE id = %s", (document_id,))
        conn.commit()
