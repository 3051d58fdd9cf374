import logging
from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..auth.session import AuthSession
from ..models.models import Note, Resident
from ..schemas.schemas import NoteCreate, NoteUpdate
from .audit import audit_log, snapshot
from .gateway import write_scope
from .permissions import can_edit_resident, ensure_allowed

logger = logging.getLogger(__name__)


def get_note_row(db: Session, note_id: int) -> Note:
    row = db.get(Note, note_id)
    if not row:
        raise HTTPException(status_code=404, detail="Note not found")
    return row


def list_notes(db: Session, resident_id: int) -> List[Note]:
    if db.get(Resident, resident_id) is None:
        raise HTTPException(status_code=404, detail="Resident not found")
    return (
        db.query(Note)
        .filter(Note.resident_id == resident_id)
        .order_by(Note.created_at.desc(), Note.id.desc())
        .all()
    )


def create_note(db: Session, session: AuthSession, resident_id: int, payload: NoteCreate) -> Note:
    ensure_allowed(can_edit_resident, session)
    if db.get(Resident, resident_id) is None:
        raise HTTPException(status_code=404, detail="Resident not found")
    row = Note(resident_id=resident_id, content=payload.content, created_by=session.email)
    with write_scope(db, "create note"):
        db.add(row)
    db.refresh(row)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="note.create",
        target_entity_type="Note",
        target_entity_id=str(row.id),
        after=snapshot(row),
    )
    logger.info("Added note %s to resident %s", row.id, resident_id)
    return row


def update_note(db: Session, session: AuthSession, note_id: int, payload: NoteUpdate) -> Note:
    ensure_allowed(can_edit_resident, session)
    row = get_note_row(db, note_id)
    before = snapshot(row)
    with write_scope(db, "update note"):
        row.content = payload.content
        db.add(row)
    db.refresh(row)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="note.update",
        target_entity_type="Note",
        target_entity_id=str(row.id),
        before=before,
        after=snapshot(row),
    )
    return row


def delete_note(db: Session, session: AuthSession, note_id: int) -> None:
    ensure_allowed(can_edit_resident, session)
    row = get_note_row(db, note_id)
    before = snapshot(row)
    with write_scope(db, "delete note"):
        db.delete(row)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="note.delete",
        target_entity_type="Note",
        target_entity_id=str(note_id),
        before=before,
    )
