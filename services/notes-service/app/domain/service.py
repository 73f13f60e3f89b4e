"""Note service orchestrating persistence for the notes API."""

from __future__ import annotations

import logging
from typing import Protocol

from .contracts import CreateNoteInput, UpdateNoteInput
from .note import Note
from ..errors import NoteNotFound

logger = logging.getLogger(__name__)


class NoteStore(Protocol):
    def create_note(self, payload: CreateNoteInput) -> Note: ...

    def list_notes(self) -> list[Note]: ...

    def get_note(self, note_id: str) -> Note | None: ...

    def update_note(self, payload: UpdateNoteInput) -> Note | None: ...

    def delete_note(self, note_id: str) -> bool: ...


class NoteService:
    """Note workflows backed by a note store."""

    def __init__(self, repository: NoteStore) -> None:
        """Store the repository used for all note persistence."""
        self._repository = repository

    def create_note(self, payload: CreateNoteInput) -> Note:
        note = self._repository.create_note(payload)
        logger.info("note created: %s", note.note_id)
        return note

    def list_notes(self) -> list[Note]:
        return self._repository.list_notes()

    def get_note(self, note_id: str) -> Note:
        """Return the note with ``note_id`` or raise :class:`NoteNotFound`."""
        note = self._repository.get_note(note_id)
        if note is None:
            raise NoteNotFound()
        return note

    def update_note(self, payload: UpdateNoteInput) -> Note:
        """Replace the content of an existing note."""
        note = self._repository.update_note(payload)
        if note is None:
            raise NoteNotFound()
        logger.info("note updated: %s", note.note_id)
        return note

    def delete_note(self, note_id: str) -> None:
        if not self._repository.delete_note(note_id):
            raise NoteNotFound()
        logger.info("note deleted: %s", note_id)
