import logging
import uuid
from pathlib import Path
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..auth.session import AuthSession
from ..config import settings
from ..models.models import Resident, ResidentDocument
from ..schemas.schemas import ResidentDocumentRead
from .audit import audit_log, snapshot
from .gateway import write_scope
from .permissions import can_edit_resident, ensure_allowed
from .storage import DEFAULT_CONTENT_TYPE, RetrievedFile, storage_service

logger = logging.getLogger(__name__)


def document_view(document: ResidentDocument) -> ResidentDocumentRead:
    return ResidentDocumentRead(
        id=document.id,
        resident_id=document.resident_id,
        filename=document.filename,
        content_type=document.content_type,
        file_size=document.file_size,
        uploaded_by_user_id=document.uploaded_by_user_id,
        created_at=document.created_at,
        download_url=f"/documents/{document.id}/download",
    )


def get_document_row(db: Session, document_id: int) -> ResidentDocument:
    row = db.get(ResidentDocument, document_id)
    if not row:
        raise HTTPException(status_code=404, detail="Document not found")
    return row


def list_documents(db: Session, resident_id: int) -> List[ResidentDocument]:
    if db.get(Resident, resident_id) is None:
        raise HTTPException(status_code=404, detail="Resident not found")
    return (
        db.query(ResidentDocument)
        .filter(ResidentDocument.resident_id == resident_id)
        .order_by(ResidentDocument.created_at.desc(), ResidentDocument.id.desc())
        .all()
    )


def upload_document(
    db: Session,
    session: AuthSession,
    resident_id: int,
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str] = None,
) -> ResidentDocument:
    ensure_allowed(can_edit_resident, session)
    if db.get(Resident, resident_id) is None:
        raise HTTPException(status_code=404, detail="Resident not found")
    if not content:
        raise HTTPException(status_code=400, detail="File is empty")
    if len(content) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise HTTPException(status_code=413, detail=f"File exceeds the {limit_mb} MB upload limit")

    safe_name = Path(filename or "document").name or "document"
    relative_path = f"residents/{resident_id}/{uuid.uuid4().hex}_{safe_name}"
    stored = storage_service.save_file(relative_path, content, content_type=content_type)
    logger.info("Stored document %s for resident %s (%s bytes)", safe_name, resident_id, stored.size)

    row = ResidentDocument(
        resident_id=resident_id,
        filename=safe_name,
        content_type=content_type or DEFAULT_CONTENT_TYPE,
        file_size=stored.size,
        storage_path=stored.relative_path,
        uploaded_by_user_id=session.user_id,
    )
    try:
        with write_scope(db, "upload document"):
            db.add(row)
    except HTTPException:
        storage_service.delete_file(stored.relative_path)
        raise
    db.refresh(row)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="document.upload",
        target_entity_type="ResidentDocument",
        target_entity_id=str(row.id),
        after=snapshot(row),
    )
    return row


def download_document(db: Session, document_id: int) -> tuple[ResidentDocument, RetrievedFile]:
    row = get_document_row(db, document_id)
    return row, storage_service.retrieve_file(row.storage_path)


def delete_document(db: Session, session: AuthSession, document_id: int) -> None:
    ensure_allowed(can_edit_resident, session)
    row = get_document_row(db, document_id)
    before = snapshot(row)
    storage_path = row.storage_path
    with write_scope(db, "delete document"):
        db.delete(row)
    storage_service.delete_file(storage_path)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="document.delete",
        target_entity_type="ResidentDocument",
        target_entity_id=str(document_id),
        before=before,
    )
