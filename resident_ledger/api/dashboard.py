from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_current_session, get_db
from ..auth.session import AuthSession
from ..schemas.schemas import DashboardStatsRead
from ..services import properties as property_service
from ..services import residents as resident_service

router = APIRouter()


@router.get("/stats", response_model=DashboardStatsRead)
def dashboard_stats(
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> DashboardStatsRead:
    return DashboardStatsRead.model_validate(resident_service.get_dashboard_stats(db))


@router.get("/cities", response_model=List[str])
def dashboard_cities(
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> List[str]:
    return property_service.list_cities(db)


@router.get("/property-names", response_model=List[str])
def dashboard_property_names(
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> List[str]:
    return property_service.list_property_names(db)
