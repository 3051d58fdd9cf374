import logging
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..auth.session import AuthSession
from ..models.models import Property
from ..schemas.schemas import PropertyCreate, PropertyUpdate
from .audit import audit_log, snapshot
from .gateway import write_scope
from .permissions import can_create_property, can_delete_property, can_edit_property, ensure_allowed
from .query import collation_key, distinct_cities, property_names
from .query_cache import CITIES, PROPERTIES, PROPERTY_NAMES, PROPERTY_QUERIES, query_cache
from .records import PropertyRecord, property_record

logger = logging.getLogger(__name__)


def get_property_row(db: Session, property_id: int) -> Property:
    row = db.get(Property, property_id)
    if not row:
        raise HTTPException(status_code=404, detail="Property not found")
    return row


def _load_properties(db: Session) -> List[PropertyRecord]:
    logger.info("Fetching all properties")
    rows = db.query(Property).order_by(Property.created_at.desc(), Property.id.desc()).all()
    logger.info("Fetched %s properties", len(rows))
    return [property_record(row) for row in rows]


def list_properties(db: Session) -> List[PropertyRecord]:
    return query_cache.get_or_load(PROPERTIES, lambda: _load_properties(db))


def get_property(db: Session, property_id: int) -> PropertyRecord:
    return query_cache.get_or_load(
        PROPERTIES + (property_id,),
        lambda: property_record(get_property_row(db, property_id)),
    )


def list_cities(db: Session) -> List[str]:
    return query_cache.get_or_load(CITIES, lambda: distinct_cities(list_properties(db)))


def list_property_names(db: Session) -> List[str]:
    return query_cache.get_or_load(
        PROPERTY_NAMES,
        lambda: property_names(sorted(list_properties(db), key=lambda item: collation_key(item.name))),
    )


def _ensure_unique_code(db: Session, property_code: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Property).filter(Property.property_code == property_code)
    if exclude_id is not None:
        query = query.filter(Property.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f"Property ID {property_code} already exists")


def create_property(db: Session, session: AuthSession, payload: PropertyCreate) -> Property:
    ensure_allowed(can_create_property, session)
    _ensure_unique_code(db, payload.property_code)
    logger.info("Creating property %s", payload.property_code)
    row = Property(**payload.model_dump())
    with write_scope(db, "create property"):
        db.add(row)
    db.refresh(row)
    query_cache.invalidate_many(*PROPERTY_QUERIES)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="property.create",
        target_entity_type="Property",
        target_entity_id=str(row.id),
        after=payload.model_dump(),
    )
    logger.info("Created property %s", row.id)
    return row


def update_property(db: Session, session: AuthSession, property_id: int, payload: PropertyUpdate) -> Property:
    ensure_allowed(can_edit_property, session)
    row = get_property_row(db, property_id)
    changes = payload.model_dump(exclude_unset=True)
    if "property_code" in changes:
        _ensure_unique_code(db, changes["property_code"], exclude_id=row.id)
    logger.info("Updating property %s", property_id)
    before = snapshot(row)
    with write_scope(db, "update property"):
        for field, value in changes.items():
            setattr(row, field, value)
        db.add(row)
    db.refresh(row)
    query_cache.invalidate_many(*PROPERTY_QUERIES)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="property.update",
        target_entity_type="Property",
        target_entity_id=str(row.id),
        before=before,
        after=snapshot(row),
    )
    return row


def delete_property(db: Session, session: AuthSession, property_id: int) -> None:
    ensure_allowed(can_delete_property, session)
    row = get_property_row(db, property_id)
    before = snapshot(row)
    logger.info("Deleting property %s", property_id)
    with write_scope(db, "delete property"):
        db.delete(row)
    query_cache.invalidate_many(*PROPERTY_QUERIES)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action="property.delete",
        target_entity_type="Property",
        target_entity_id=str(property_id),
        before=before,
    )
