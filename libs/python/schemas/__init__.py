"""Shared schema exports."""

from .note import NoteDocument

__all__ = [
    "NoteDocument",
]
