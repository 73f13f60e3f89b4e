"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class CreateNoteInput:
    """Validated inputs required to create a note."""

    content: str


@dataclass(slots=True)
class UpdateNoteInput:
    """Replacement content for an existing note."""

    note_id: str
    content: str
