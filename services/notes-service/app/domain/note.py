from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Note:
    """A stored note document."""

    note_id: str
    content: str
    created_at: datetime
    updated_at: datetime | None = None
