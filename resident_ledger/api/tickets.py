from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_current_session, get_db
from ..auth.session import AuthSession
from ..schemas.schemas import TicketCommentCreate, TicketCreate, TicketRead
from ..services import tickets as ticket_service

router = APIRouter()


@router.get("/residents/{resident_id}/tickets", response_model=List[TicketRead])
def list_tickets(
    resident_id: int,
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> List[TicketRead]:
    return ticket_service.list_tickets(db, resident_id)


@router.post("/residents/{resident_id}/tickets", response_model=TicketRead, status_code=201)
def create_ticket(
    resident_id: int,
    payload: TicketCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> TicketRead:
    return ticket_service.create_ticket(db, session, resident_id, payload)


@router.post("/tickets/{ticket_id}/comments", response_model=TicketRead, status_code=201)
def add_comment(
    ticket_id: int,
    payload: TicketCommentCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> TicketRead:
    return ticket_service.add_comment(db, session, ticket_id, payload)


@router.post("/tickets/{ticket_id}/resolve", response_model=TicketRead)
def resolve_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> TicketRead:
    return ticket_service.resolve_ticket(db, session, ticket_id)
