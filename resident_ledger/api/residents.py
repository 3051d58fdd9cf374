from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..api.dependencies import get_current_session, get_db, resident_filter, resident_page, resident_sort
from ..auth.session import AuthSession
from ..schemas.schemas import ResidentCreate, ResidentPage, ResidentRead, ResidentUpdate, StatementRead
from ..services import residents as resident_service
from ..services.query import PageState, ResidentFilter, SortState

router = APIRouter()


@router.get("/", response_model=ResidentPage)
def list_residents(
    criteria: ResidentFilter = Depends(resident_filter),
    sort: SortState = Depends(resident_sort),
    page: PageState = Depends(resident_page),
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> ResidentPage:
    result = resident_service.search_residents(db, criteria, sort, page)
    return ResidentPage(
        items=[ResidentRead.model_validate(item) for item in result.items],
        page=result.page,
        page_size=result.page_size,
        total_items=result.total_items,
        total_pages=result.total_pages,
        sort=sort.field,
        direction=sort.direction,
    )


@router.post("/", response_model=ResidentRead, status_code=201)
def create_resident(
    payload: ResidentCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
):
    return resident_service.create_resident(db, session, payload)


@router.get("/{resident_id}", response_model=ResidentRead)
def get_resident(
    resident_id: int,
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> ResidentRead:
    return ResidentRead.model_validate(resident_service.get_resident(db, resident_id))


@router.put("/{resident_id}", response_model=ResidentRead)
def update_resident(
    resident_id: int,
    payload: ResidentUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
):
    return resident_service.update_resident(db, session, resident_id, payload)


@router.delete("/{resident_id}", status_code=204)
def delete_resident(
    resident_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Response:
    resident_service.delete_resident(db, session, resident_id)
    return Response(status_code=204)


@router.get("/{resident_id}/statement", response_model=StatementRead)
def get_statement(
    resident_id: int,
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> StatementRead:
    return StatementRead.model_validate(resident_service.resident_statement(db, resident_id))
