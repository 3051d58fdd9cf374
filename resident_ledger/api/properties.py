from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..api.dependencies import get_current_session, get_db
from ..auth.session import AuthSession
from ..schemas.schemas import PropertyCreate, PropertyRead, PropertyUpdate
from ..services import properties as property_service

router = APIRouter()


@router.get("/", response_model=List[PropertyRead])
def list_properties(
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> List[PropertyRead]:
    return [PropertyRead.model_validate(item) for item in property_service.list_properties(db)]


@router.post("/", response_model=PropertyRead, status_code=201)
def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
):
    return property_service.create_property(db, session, payload)


@router.get("/{property_id}", response_model=PropertyRead)
def get_property(
    property_id: int,
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> PropertyRead:
    return PropertyRead.model_validate(property_service.get_property(db, property_id))


@router.put("/{property_id}", response_model=PropertyRead)
def update_property(
    property_id: int,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
):
    return property_service.update_property(db, session, property_id, payload)


@router.delete("/{property_id}", status_code=204)
def delete_property(
    property_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Response:
    property_service.delete_property(db, session, property_id)
    return Response(status_code=204)
