import logging
from datetime import date
from typing import List, Optional, Sequence

from fastapi import HTTPException
from sqlalchemy.orm import Query, Session, selectinload

from ..auth.session import AuthSession
from ..models.models import Property, Resident
from ..schemas.schemas import ResidentCreate, ResidentUpdate
from .audit import audit_log, snapshot
from .gateway import write_scope
from .permissions import can_create_resident, can_delete_resident, can_edit_resident, ensure_allowed
from .query import Page, PageState, ResidentFilter, SortState, query_residents
from .query_cache import DASHBOARD_STATS, RESIDENT_QUERIES, RESIDENTS, query_cache
from .records import Err, Ok, ResidentRecord, Result, resident_record
from .rollup import DashboardStats, StatementOfAccount, load_dashboard_stats, statement_of_account
from .storage import storage_service

logger = logging.getLogger(__name__)


def _resident_query(db: Session) -> Query:
    return db.query(Resident).options(
        selectinload(Resident.property),
        selectinload(Resident.disbursements),
        selectinload(Resident.repayments),
    )


def _load_residents(db: Session) -> List[ResidentRecord]:
    logger.info("Fetching all residents")
    rows = _resident_query(db).order_by(Resident.created_at.desc(), Resident.id.desc()).all()
    logger.info("Fetched %s residents", len(rows))
    return [resident_record(row) for row in rows]


def list_residents(db: Session) -> List[ResidentRecord]:
    return query_cache.get_or_load(RESIDENTS, lambda: _load_residents(db))


def fetch_residents_result(db: Session) -> Result[Sequence[ResidentRecord]]:
    """Resident fetch for aggregate views; failures come back as ``Err`` instead of raising."""
    try:
        return Ok(list_residents(db))
    except Exception as exc:
        logger.exception("Error fetching residents")
        return Err(str(exc) or exc.__class__.__name__)


def get_resident_row(db: Session, resident_id: int) -> Resident:
    row = _resident_query(db).filter(Resident.id == resident_id).first()
    if not row:
        raise HTTPException(status_code=404, detail="Resident not found")
    return row


def get_resident(db: Session, resident_id: int) -> ResidentRecord:
    return query_cache.get_or_load(
        RESIDENTS + (resident_id,),
        lambda: resident_record(get_resident_row(db, resident_id)),
    )


def search_residents(
    db: Session,
    criteria: Optional[ResidentFilter] = None,
    sort: Optional[SortState] = None,
    page: Optional[PageState] = None,
) -> Page[ResidentRecord]:
    return query_residents(list_residents(db), criteria, sort, page)


def resident_statement(db: Session, resident_id: int) -> StatementOfAccount:
    return statement_of_account(get_resident(db, resident_id))


def get_dashboard_stats(db: Session, today: Optional[date] = None) -> DashboardStats:
    today = today or date.today()
    key = DASHBOARD_STATS + (today.isoformat(),)
    cached = query_cache.get(key)
    if cached is not None:
        return cached
    generation = query_cache.generation(key)
    result = fetch_residents_result(db)
    stats = load_dashboard_stats(result.unwrap, today)
    # failed fetches are never cached
    if result.ok:
        query_cache.set(key, stats, generation=generation)
    return stats


def _ensure_unique_code(db: Session, resident_code: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Resident).filter(Resident.resident_code == resident_code)
    if exclude_id is not None:
        query = query.filter(Resident.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f"Resident ID {resident_code} already exists")


def _ensure_property_exists(db: Session, property_id: Optional[int]) -> None:
    if property_id is not None and db.get(Property, property_id) is None:
        raise HTTPException(status_code=404, detail="Property not found")


def create_resident(db: Session, session: AuthSession, payload: ResidentCreate) -> Resident:
    ensure_allowed(can_create_resident, session)
    _ensure_unique_code(db, payload.resident_code)
    _ensure_property_exists(db, payload.property_id)
    logger.info("Creating resident %s", payload.resident_code)
    row = Resident(**payload.model_dump())
    with write_scope(db, "create resident"):
        db.add(row)
    query_cache.invalidate_many(*RESIDENT_QUERIES)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="resident.create",
        target_entity_type="Resident",
        target_entity_id=str(row.id),
        after=payload.model_dump(),
    )
    logger.info("Created resident %s", row.id)
    return get_resident_row(db, row.id)


def update_resident(db: Session, session: AuthSession, resident_id: int, payload: ResidentUpdate) -> Resident:
    ensure_allowed(can_edit_resident, session)
    row = get_resident_row(db, resident_id)
    changes = payload.model_dump(exclude_unset=True)
    if "resident_code" in changes:
        _ensure_unique_code(db, changes["resident_code"], exclude_id=row.id)
    if "property_id" in changes:
        _ensure_property_exists(db, changes["property_id"])
    logger.info("Updating resident %s", resident_id)
    before = snapshot(row)
    with write_scope(db, "update resident"):
        for field, value in changes.items():
            setattr(row, field, value)
        db.add(row)
    query_cache.invalidate_many(*RESIDENT_QUERIES)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="resident.update",
        target_entity_type="Resident",
        target_entity_id=str(row.id),
        before=before,
        after=snapshot(row),
    )
    return get_resident_row(db, resident_id)


def delete_resident(db: Session, session: AuthSession, resident_id: int) -> None:
    ensure_allowed(can_delete_resident, session)
    row = get_resident_row(db, resident_id)
    before = snapshot(row)
    storage_paths = [document.storage_path for document in row.documents]
    logger.info("Deleting resident %s", resident_id)
    with write_scope(db, "delete resident"):
        db.delete(row)
    for storage_path in storage_paths:
        storage_service.delete_file(storage_path)
    query_cache.invalidate_many(*RESIDENT_QUERIES)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="resident.delete",
        target_entity_type="Resident",
        target_entity_id=str(resident_id),
        before=before,
    )
