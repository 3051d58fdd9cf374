from __future__ import annotations

import math
import unicodedata
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Dict, Generic, Iterable, List, Literal, Optional, Sequence, TypeVar

from ..constants import DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS
from .records import PropertyRecord, ResidentRecord

T = TypeVar("T")

SortField = Literal["name", "monthly_rent", "lease_start_date", "lease_end_date", "repayment_status"]
SortDirection = Literal["asc", "desc"]

EPOCH = date(1970, 1, 1)


@dataclass(frozen=True)
class ResidentFilter:
    search: Optional[str] = None
    city: Optional[str] = None
    property_name: Optional[str] = None
    repayment_status: Optional[str] = None

    def matches(self, resident: ResidentRecord) -> bool:
        if self.search:
            query = self.search.lower()
            haystacks = (resident.name, resident.resident_code, resident.property_name or "")
            if not any(query in value.lower() for value in haystacks):
                return False
        if self.city and resident.city != self.city:
            return False
        if self.property_name and resident.property_name != self.property_name:
            return False
        if self.repayment_status and resident.repayment_status != self.repayment_status:
            return False
        return True


def filter_residents(residents: Iterable[ResidentRecord], criteria: Optional[ResidentFilter] = None) -> List[ResidentRecord]:
    if criteria is None:
        return list(residents)
    return [resident for resident in residents if criteria.matches(resident)]


def collation_key(value: str) -> str:
    """Case- and accent-insensitive key, so "Émile" sorts with "Emile" and before "Zoe"."""
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(char for char in decomposed if not unicodedata.combining(char)).casefold()


def _name_key(resident: ResidentRecord) -> Any:
    return (collation_key(resident.name), resident.name.casefold(), resident.name)


SORT_KEYS: Dict[str, Callable[[ResidentRecord], Any]] = {
    "name": _name_key,
    "monthly_rent": lambda resident: resident.monthly_rent,
    "lease_start_date": lambda resident: resident.lease_start_date or EPOCH,
    "lease_end_date": lambda resident: resident.lease_end_date or EPOCH,
    "repayment_status": lambda resident: resident.repayment_status or "",
}


@dataclass(frozen=True)
class SortState:
    field: SortField = "name"
    direction: SortDirection = "asc"

    def select(self, field: SortField) -> "SortState":
        """Selecting the active field flips direction; a new field starts ascending."""
        if field == self.field:
            return replace(self, direction="desc" if self.direction == "asc" else "asc")
        return SortState(field=field, direction="asc")


def sort_residents(residents: Iterable[ResidentRecord], state: Optional[SortState] = None) -> List[ResidentRecord]:
    state = state or SortState()
    try:
        key = SORT_KEYS[state.field]
    except KeyError as exc:
        raise ValueError(f"Unsupported sort field: {state.field}") from exc
    return sorted(residents, key=key, reverse=state.direction == "desc")


@dataclass(frozen=True)
class PageState:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def with_page_size(self, page_size: int) -> "PageState":
        _validate_page_size(page_size)
        return PageState(page=1, page_size=page_size)

    def with_page(self, page: int) -> "PageState":
        return replace(self, page=page)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.page_size


def _validate_page_size(page_size: int) -> None:
    if page_size not in PAGE_SIZE_OPTIONS:
        raise ValueError(f"Page size must be one of {', '.join(str(size) for size in PAGE_SIZE_OPTIONS)}")


def paginate(items: Sequence[T], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    _validate_page_size(page_size)
    if page < 1:
        raise ValueError("Page numbers start at 1")
    start = (page - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        page=page,
        page_size=page_size,
        total_items=len(items),
        total_pages=math.ceil(len(items) / page_size),
    )


def query_residents(
    residents: Iterable[ResidentRecord],
    criteria: Optional[ResidentFilter] = None,
    sort: Optional[SortState] = None,
    page: Optional[PageState] = None,
) -> Page[ResidentRecord]:
    page = page or PageState()
    ordered = sort_residents(filter_residents(residents, criteria), sort)
    return paginate(ordered, page.page, page.page_size)


def distinct_cities(properties: Iterable[PropertyRecord]) -> List[str]:
    return sorted({item.city for item in properties if item.city})


def property_names(properties: Iterable[PropertyRecord]) -> List[str]:
    return [item.name for item in properties]
