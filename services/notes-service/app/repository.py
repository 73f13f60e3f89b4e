"""Database repository for note documents."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

import psycopg
from psycopg.errors import QueryCanceled
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool, PoolTimeout

from .domain.contracts import CreateNoteInput, UpdateNoteInput
from .domain.note import Note
from .errors import StorageError, StorageTimeout

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS notes (
    note_id UUID PRIMARY KEY,
    content TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ
)
"""


def _parse_note_id(note_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(note_id)
    except ValueError:
        return None


class NoteRepository:
    """Postgres-backed note persistence."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    @contextmanager
    def _connection(self) -> Iterator[psycopg.Connection]:
        """Borrow a pooled connection, translating driver failures into storage errors."""
        try:
            with self._pool.connection() as conn:
                yield conn
        except (PoolTimeout, QueryCanceled) as exc:
            logger.exception("note store timed out")
            raise StorageTimeout() from exc
        except psycopg.Error as exc:
            logger.exception("note store failure")
            raise StorageError() from exc

    def ensure_schema(self) -> None:
        """Create the notes table when it does not exist yet."""
        with self._connection() as conn:
            conn.execute(_SCHEMA)
            conn.commit()

    def create_note(self, payload: CreateNoteInput) -> Note:
        """Persist a new note and return it."""
        note_id = uuid.uuid4()
        now = datetime.now(timezone.utc)
        with self._connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    INSERT INTO notes (note_id, content, created_at)
                    VALUES (%s, %s, %s)
                    RETURNING note_id, content, created_at, updated_at
                    """,
                    (note_id, payload.content, now),
                )
                row = cur.fetchone()
            conn.commit()
        return self._map_record(row)

    def list_notes(self) -> list[Note]:
        """Return every note, oldest first."""
        with self._connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT note_id, content, created_at, updated_at
                    FROM notes
                    ORDER BY created_at, note_id
                    """
                )
                rows = cur.fetchall()
        return [self._map_record(row) for row in rows]

    def get_note(self, note_id: str) -> Note | None:
        """Fetch a note by identifier or return ``None``."""
        parsed = _parse_note_id(note_id)
        if parsed is None:
            return None
        with self._connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT note_id, content, created_at, updated_at
                    FROM notes
                    WHERE note_id = %s
                    """,
                    (parsed,),
                )
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_record(row)

    def update_note(self, payload: UpdateNoteInput) -> Note | None:
        """Replace a note's content, returning ``None`` when it does not exist."""
        parsed = _parse_note_id(payload.note_id)
        if parsed is None:
            return None
        with self._connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    UPDATE notes
                    SET content = %s, updated_at = %s
                    WHERE note_id = %s
                    RETURNING note_id, content, created_at, updated_at
                    """,
                    (payload.content, datetime.now(timezone.utc), parsed),
                )
                row = cur.fetchone()
            conn.commit()
        if not row:
            return None
        return self._map_record(row)

    def delete_note(self, note_id: str) -> bool:
        """Delete a note and report whether a row was removed."""
        parsed = _parse_note_id(note_id)
        if parsed is None:
            return False
        with self._connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute("DELETE FROM notes WHERE note_id = %s", (parsed,))
                deleted = cur.rowcount
            conn.commit()
        return deleted > 0

    def _map_record(self, row: tuple) -> Note:
        """Convert a raw database tuple into the domain ``Note`` dataclass."""
        return Note(
            note_id=str(row[0]),
            content=row[1],
            created_at=row[2],
            updated_at=row[3],
        )
