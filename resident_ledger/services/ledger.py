"""Disbursement and repayment rows hanging off a resident.

Both are edited under the resident's edit permission and every write drops
the cached resident and dashboard queries, since both embed these rows.
"""
import logging
from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..auth.session import AuthSession
from ..models.models import Disbursement, Repayment, Resident
from ..schemas.schemas import (
    DisbursementCreate,
    DisbursementUpdate,
    RepaymentCreate,
    RepaymentStatusUpdate,
    RepaymentUpdate,
)
from .audit import audit_log, snapshot
from .gateway import write_scope
from .permissions import can_edit_resident, ensure_allowed
from .query_cache import RESIDENT_QUERIES, query_cache

logger = logging.getLogger(__name__)


def _require_resident(db: Session, resident_id: int) -> Resident:
    resident = db.get(Resident, resident_id)
    if not resident:
        raise HTTPException(status_code=404, detail="Resident not found")
    return resident


def _record_write(db: Session, session: AuthSession, action: str, entity: str, entity_id: int, before=None, after=None):
    query_cache.invalidate_many(*RESIDENT_QUERIES)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action=action,
        target_entity_type=entity,
        target_entity_id=str(entity_id),
        before=before,
        after=after,
    )


def get_disbursement_row(db: Session, disbursement_id: int) -> Disbursement:
    row = db.get(Disbursement, disbursement_id)
    if not row:
        raise HTTPException(status_code=404, detail="Disbursement not found")
    return row


def list_disbursements(db: Session, resident_id: int) -> List[Disbursement]:
    _require_resident(db, resident_id)
    return (
        db.query(Disbursement)
        .filter(Disbursement.resident_id == resident_id)
        .order_by(Disbursement.date.desc(), Disbursement.id.desc())
        .all()
    )


def create_disbursement(db: Session, session: AuthSession, resident_id: int, payload: DisbursementCreate) -> Disbursement:
    ensure_allowed(can_edit_resident, session)
    _require_resident(db, resident_id)
    logger.info("Recording disbursement %s for resident %s", payload.disbursement_code, resident_id)
    row = Disbursement(resident_id=resident_id, **payload.model_dump())
    with write_scope(db, "create disbursement"):
        db.add(row)
    db.refresh(row)
    _record_write(db, session, "disbursement.create", "Disbursement", row.id, after=snapshot(row))
    return row


def update_disbursement(
    db: Session, session: AuthSession, disbursement_id: int, payload: DisbursementUpdate
) -> Disbursement:
    ensure_allowed(can_edit_resident, session)
    row = get_disbursement_row(db, disbursement_id)
    before = snapshot(row)
    with write_scope(db, "update disbursement"):
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(row, field, value)
        db.add(row)
    db.refresh(row)
    _record_write(db, session, "disbursement.update", "Disbursement", row.id, before=before, after=snapshot(row))
    return row


def delete_disbursement(db: Session, session: AuthSession, disbursement_id: int) -> None:
    ensure_allowed(can_edit_resident, session)
    row = get_disbursement_row(db, disbursement_id)
    before = snapshot(row)
    with write_scope(db, "delete disbursement"):
        db.delete(row)
    _record_write(db, session, "disbursement.delete", "Disbursement", disbursement_id, before=before)


def get_repayment_row(db: Session, repayment_id: int) -> Repayment:
    row = db.get(Repayment, repayment_id)
    if not row:
        raise HTTPException(status_code=404, detail="Repayment not found")
    return row


def list_repayments(db: Session, resident_id: int) -> List[Repayment]:
    _require_resident(db, resident_id)
    return (
        db.query(Repayment)
        .filter(Repayment.resident_id == resident_id)
        .order_by(Repayment.due_date.desc(), Repayment.id.desc())
        .all()
    )


def create_repayment(db: Session, session: AuthSession, resident_id: int, payload: RepaymentCreate) -> Repayment:
    ensure_allowed(can_edit_resident, session)
    _require_resident(db, resident_id)
    logger.info("Recording repayment %s for resident %s", payload.repayment_code, resident_id)
    row = Repayment(resident_id=resident_id, **payload.model_dump())
    with write_scope(db, "create repayment"):
        db.add(row)
    db.refresh(row)
    _record_write(db, session, "repayment.create", "Repayment", row.id, after=snapshot(row))
    return row


def update_repayment(db: Session, session: AuthSession, repayment_id: int, payload: RepaymentUpdate) -> Repayment:
    ensure_allowed(can_edit_resident, session)
    row = get_repayment_row(db, repayment_id)
    before = snapshot(row)
    with write_scope(db, "update repayment"):
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(row, field, value)
        db.add(row)
    db.refresh(row)
    _record_write(db, session, "repayment.update", "Repayment", row.id, before=before, after=snapshot(row))
    return row


def update_repayment_status(
    db: Session, session: AuthSession, repayment_id: int, payload: RepaymentStatusUpdate
) -> Repayment:
    """Set a repayment's status; amount and payment date change only when supplied."""
    ensure_allowed(can_edit_resident, session)
    row = get_repayment_row(db, repayment_id)
    before = snapshot(row)
    logger.info("Updating repayment %s status to %s", repayment_id, payload.status)
    with write_scope(db, "update repayment status"):
        row.status = payload.status
        if payload.amount_paid is not None:
            row.amount_paid = payload.amount_paid
        if payload.actual_payment_date is not None:
            row.actual_payment_date = payload.actual_payment_date
        db.add(row)
    db.refresh(row)
    _record_write(db, session, "repayment.status", "Repayment", row.id, before=before, after=snapshot(row))
    return row


def delete_repayment(db: Session, session: AuthSession, repayment_id: int) -> None:
    ensure_allowed(can_edit_resident, session)
    row = get_repayment_row(db, repayment_id)
    before = snapshot(row)
    with write_scope(db, "delete repayment"):
        db.delete(row)
    _record_write(db, session, "repayment.delete", "Repayment", repayment_id, before=before)
