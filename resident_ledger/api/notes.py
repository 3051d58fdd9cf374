from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..api.dependencies import get_current_session, get_db
from ..auth.session import AuthSession
from ..models.models import Note
from ..schemas.schemas import NoteCreate, NoteRead, NoteUpdate
from ..services import notes as note_service

router = APIRouter()


@router.get("/residents/{resident_id}/notes", response_model=List[NoteRead])
def list_notes(
    resident_id: int,
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> List[Note]:
    return note_service.list_notes(db, resident_id)


@router.post("/residents/{resident_id}/notes", response_model=NoteRead, status_code=201)
def create_note(
    resident_id: int,
    payload: NoteCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Note:
    return note_service.create_note(db, session, resident_id, payload)


@router.put("/notes/{note_id}", response_model=NoteRead)
def update_note(
    note_id: int,
    payload: NoteUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Note:
    return note_service.update_note(db, session, note_id, payload)


@router.delete("/notes/{note_id}", status_code=204)
def delete_note(
    note_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Response:
    note_service.delete_note(db, session, note_id)
    return Response(status_code=204)
