import logging
from datetime import date
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from ..auth.session import AuthSession
from ..constants import TICKET_STATUS_PENDING, TICKET_STATUS_RESOLVED
from ..models.models import Resident, Ticket, TicketComment, utcnow
from ..schemas.schemas import TicketCommentCreate, TicketCommentRead, TicketCreate, TicketRead
from .audit import audit_log, snapshot
from .gateway import write_scope
from .permissions import can_edit_resident, ensure_allowed
from .status import derive_ticket_status

logger = logging.getLogger(__name__)


def ticket_view(ticket: Ticket, today: Optional[date] = None) -> TicketRead:
    """Serialize a ticket with its status derived from the due date."""
    return TicketRead(
        id=ticket.id,
        resident_id=ticket.resident_id,
        title=ticket.title,
        description=ticket.description or "",
        status=derive_ticket_status(ticket.status, ticket.due_date, today),
        due_date=ticket.due_date,
        created_by=ticket.created_by,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
        resolved_at=ticket.resolved_at,
        comments=[TicketCommentRead.model_validate(comment) for comment in ticket.comments],
    )


def get_ticket_row(db: Session, ticket_id: int) -> Ticket:
    row = db.query(Ticket).options(selectinload(Ticket.comments)).filter(Ticket.id == ticket_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return row


def list_tickets(db: Session, resident_id: int, today: Optional[date] = None) -> List[TicketRead]:
    if db.get(Resident, resident_id) is None:
        raise HTTPException(status_code=404, detail="Resident not found")
    rows = (
        db.query(Ticket)
        .options(selectinload(Ticket.comments))
        .filter(Ticket.resident_id == resident_id)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc())
        .all()
    )
    return [ticket_view(row, today) for row in rows]


def create_ticket(db: Session, session: AuthSession, resident_id: int, payload: TicketCreate) -> TicketRead:
    ensure_allowed(can_edit_resident, session)
    if db.get(Resident, resident_id) is None:
        raise HTTPException(status_code=404, detail="Resident not found")
    logger.info("Opening ticket for resident %s", resident_id)
    row = Ticket(
        resident_id=resident_id,
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
        status=TICKET_STATUS_PENDING,
        created_by=session.email,
    )
    with write_scope(db, "create ticket"):
        db.add(row)
    db.refresh(row)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="ticket.create",
        target_entity_type="Ticket",
        target_entity_id=str(row.id),
        after=snapshot(row),
    )
    return ticket_view(get_ticket_row(db, row.id))


def add_comment(db: Session, session: AuthSession, ticket_id: int, payload: TicketCommentCreate) -> TicketRead:
    ensure_allowed(can_edit_resident, session)
    ticket = get_ticket_row(db, ticket_id)
    comment = TicketComment(ticket_id=ticket.id, content=payload.content, created_by=session.email)
    with write_scope(db, "add ticket comment"):
        db.add(comment)
    db.refresh(comment)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="ticket.comment",
        target_entity_type="Ticket",
        target_entity_id=str(ticket_id),
        after={"comment_id": comment.id, "content": comment.content},
    )
    return ticket_view(get_ticket_row(db, ticket_id))


def resolve_ticket(db: Session, session: AuthSession, ticket_id: int) -> TicketRead:
    ensure_allowed(can_edit_resident, session)
    ticket = get_ticket_row(db, ticket_id)
    if ticket.status == TICKET_STATUS_RESOLVED:
        return ticket_view(ticket)
    before = snapshot(ticket)
    logger.info("Resolving ticket %s", ticket_id)
    with write_scope(db, "resolve ticket"):
        ticket.status = TICKET_STATUS_RESOLVED
        ticket.resolved_at = utcnow()
        db.add(ticket)
    db.refresh(ticket)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="ticket.resolve",
        target_entity_type="Ticket",
        target_entity_id=str(ticket_id),
        before=before,
        after=snapshot(ticket),
    )
    return ticket_view(ticket)
