"""HTTP route definitions for the notes service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field
from schemas import NoteDocument

from ..domain.contracts import CreateNoteInput, UpdateNoteInput
from ..domain.note import Note
from ..domain.service import NoteService
from ..security.gate import GatedRoute

# Mutations pass through the request gate; reads are deliberately left ungated.
router = APIRouter(prefix="/v1", tags=["notes"], route_class=GatedRoute)
read_router = APIRouter(prefix="/v1", tags=["notes"])


class NoteContentRequest(BaseModel):
    """Payload accepted when creating or replacing a note."""

    content: str = Field(..., min_length=1)


def get_service(request: Request) -> NoteService:
    """Resolve the `NoteService` stored on the FastAPI application state."""
    service: NoteService = request.app.state.note_service
    return service


def _to_document(note: Note) -> NoteDocument:
    return NoteDocument(
        note_id=note.note_id,
        content=note.content,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


@router.post("/notes", response_model=NoteDocument, status_code=status.HTTP_201_CREATED)
def create_note(
    payload: NoteContentRequest,
    service: NoteService = Depends(get_service),
) -> NoteDocument:
    """Create a note."""
    note = service.create_note(CreateNoteInput(content=payload.content))
    return _to_document(note)


@router.put("/notes/{note_id}", response_model=NoteDocument)
def update_note(
    note_id: str,
    payload: NoteContentRequest,
    service: NoteService = Depends(get_service),
) -> NoteDocument:
    """Replace the content of an existing note."""
    note = service.update_note(UpdateNoteInput(note_id=note_id, content=payload.content))
    return _to_document(note)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_note(
    note_id: str,
    service: NoteService = Depends(get_service),
) -> Response:
    service.delete_note(note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@read_router.get("/notes", response_model=list[NoteDocument])
def list_notes(service: NoteService = Depends(get_service)) -> list[NoteDocument]:
    """Return all notes, oldest first."""
    return [_to_document(note) for note in service.list_notes()]


@read_router.get("/notes/{note_id}", response_model=NoteDocument)
def get_note(note_id: str, service: NoteService = Depends(get_service)) -> NoteDocument:
    return _to_document(service.get_note(note_id))
