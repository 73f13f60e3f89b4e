"""Note document contract shared with clients of the notes API."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class NoteDocument(BaseModel):
    """Wire representation of a stored note; the identifier travels as ``_id``."""

    model_config = ConfigDict(populate_by_name=True)

    note_id: str = Field(..., alias="_id")
    content: str
    created_at: datetime
    updated_at: datetime | None = None
