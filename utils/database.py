"""
PostgreSQL document store: named collections of JSON documents
"""

import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2.extras import Json, RealDictCursor

from utils.logging_utils import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (collection, id)
)
"""


class DatabaseManager:
    """
    Manages the PostgreSQL connection and document collections
    """

    def __init__(self, connection_string: Optional[str] = None, connect=psycopg2.connect):
        """
        Initialize database connection.

        Args:
            connection_string: PostgreSQL connection URL
            connect: Connection factory (tests)
        """
        if not connection_string:
            raise ValueError("Database connection string not provided")
        self.connection_string = connection_string
        self._connect_fn = connect

        self.conn = None
        self._connect()

    def _connect(self):
        """Establish database connection"""
        try:
            self.conn = self._connect_fn(self.connection_string)
            logger.info("✅ Connected to PostgreSQL database")
        except Exception as e:
            logger.error(f"❌ Failed to connect to PostgreSQL: {str(e)}")
            raise

    def _ensure_connection(self):
        """Ensure database connection is alive"""
        if self.conn is None or self.conn.closed:
            self._connect()

    @contextmanager
    def get_cursor(self, cursor_factory=None):
        """
        Context manager for database cursors

        Args:
            cursor_factory: Cursor factory (e.g., RealDictCursor)
        """
        self._ensure_connection()
        cursor = self.conn.cursor(cursor_factory=cursor_factory)
        try:
            yield cursor
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        finally:
            cursor.close()

    def ensure_schema(self):
        """Create the documents table if it does not exist"""
        with self.get_cursor() as cur:
            cur.execute(SCHEMA_SQL)

    @staticmethod
    def _row_to_document(row) -> Dict[str, Any]:
        document = dict(row["data"] or {})
        document["id"] = row["id"]
        return document

    def add_document(self, collection: str, data: Dict[str, Any]) -> str:
        """
        Insert a document

        Args:
            collection: Collection name
            data: Document fields

        Returns:
            Generated document id
        """
        document_id = uuid.uuid4().hex
        payload = {k: v for k, v in data.items() if k != "id"}
        with self.get_cursor() as cur:
            cur.execute(
                "INSERT INTO documents (collection, id, data) VALUES (%s, %s, %s)",
                (collection, document_id, Json(payload)),
            )
        logger.debug(f"Added document {collection}/{document_id}")
        return document_id

    def get_document(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one document by id, with ``id`` merged into the fields"""
        with self.get_cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                "SELECT id, data FROM documents WHERE collection = %s AND id = %s",
                (collection, document_id),
            )
            row = cur.fetchone()
        return self._row_to_document(row) if row else None

    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        """All documents in a collection, oldest first"""
        with self.get_cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                "SELECT id, data FROM documents WHERE collection = %s ORDER BY created_at, id",
                (collection,),
            )
            rows = cur.fetchall()
        return [self._row_to_document(row) for row in rows]

    def find_documents(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        """Documents whose top-level ``field`` equals ``value``"""
        with self.get_cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                "SELECT id, data FROM documents WHERE collection = %s AND data @> %s ORDER BY created_at, id",
                (collection, Json({field: value})),
            )
            rows = cur.fetchall()
        return [self._row_to_document(row) for row in rows]

    def update_document(self, collection: str, document_id: str, fields: Dict[str, Any]) -> bool:
        """
        Merge fields into a document

        Returns:
            True if the document existed
        """
        payload = {k: v for k, v in fields.items() if k != "id"}
        with self.get_cursor() as cur:
            cur.execute(
                "UPDATE documents SET data = data || %s::jsonb, updated_at = now() "
                "WHERE collection = %s AND id = %s",
                (Json(payload), collection, document_id),
            )
            return cur.rowcount > 0

    def delete_document(self, collection: str, document_id: str) -> bool:
        """Delete a document. Returns True if it existed."""
        with self.get_cursor() as cur:
            cur.execute(
                "DELETE FROM documents WHERE collection = %s AND id = %s",
                (collection, document_id),
            )
            return cur.rowcount > 0

    def close(self):
        """Close database connection"""
        if self.conn and not self.conn.closed:
            self.conn.close()
            logger.info("✅ Closed PostgreSQL connection")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
