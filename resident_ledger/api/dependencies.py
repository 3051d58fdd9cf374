from typing import Optional

from fastapi import HTTPException, Query

from ..auth.jwt import get_current_session, get_db
from ..constants import DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS
from ..services.query import PageState, ResidentFilter, SortState

__all__ = ["get_db", "get_current_session", "resident_filter", "resident_sort", "resident_page"]


def resident_filter(
    search: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    property: Optional[str] = Query(None, description="Property name"),
    status: Optional[str] = Query(None, description="Repayment status"),
) -> ResidentFilter:
    return ResidentFilter(search=search, city=city, property_name=property, repayment_status=status)


def resident_sort(
    sort: str = Query("name", pattern="^(name|monthly_rent|lease_start_date|lease_end_date|repayment_status)$"),
    direction: str = Query("asc", pattern="^(asc|desc)$"),
) -> SortState:
    return SortState(field=sort, direction=direction)  # type: ignore[arg-type]


def resident_page(page: int = Query(1, ge=1), page_size: int = Query(DEFAULT_PAGE_SIZE)) -> PageState:
    if page_size not in PAGE_SIZE_OPTIONS:
        options = ", ".join(str(size) for size in PAGE_SIZE_OPTIONS)
        raise HTTPException(status_code=422, detail=f"page_size must be one of {options}")
    return PageState(page=page, page_size=page_size)
