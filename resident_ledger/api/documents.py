from typing import List

from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy.orm import Session

from ..api.dependencies import get_current_session, get_db
from ..auth.session import AuthSession
from ..schemas.schemas import ResidentDocumentRead
from ..services import documents as document_service

router = APIRouter()


@router.get("/residents/{resident_id}/documents", response_model=List[ResidentDocumentRead])
def list_documents(
    resident_id: int,
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> List[ResidentDocumentRead]:
    return [document_service.document_view(item) for item in document_service.list_documents(db, resident_id)]


@router.post("/residents/{resident_id}/documents", response_model=ResidentDocumentRead, status_code=201)
async def upload_document(
    resident_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> ResidentDocumentRead:
    contents = await file.read()
    document = document_service.upload_document(
        db,
        session,
        resident_id,
        filename=file.filename,
        content=contents,
        content_type=file.content_type,
    )
    return document_service.document_view(document)


@router.get("/documents/{document_id}/download")
def download_document(
    document_id: int,
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> Response:
    document, stored = document_service.download_document(db, document_id)
    return Response(
        content=stored.content,
        media_type=document.content_type or stored.content_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )


@router.delete("/documents/{document_id}", status_code=204)
def delete_document(
    document_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Response:
    document_service.delete_document(db, session, document_id)
    return Response(status_code=204)
