from datetime import date
from decimal import Decimal

import pytest

from resident_ledger.services.query import (
    PageState,
    ResidentFilter,
    SortState,
    collation_key,
    distinct_cities,
    filter_residents,
    paginate,
    property_names,
    query_residents,
    sort_residents,
)
from resident_ledger.services.records import PropertyRecord, ResidentRecord

MAPLE = PropertyRecord(id=1, property_code="P-1", name="Maple Court", address="1 Main", city="Pune")
CEDAR = PropertyRecord(id=2, property_code="P-2", name="Cedar Heights", address="2 Main", city="Mumbai")


def _resident(ident: int, name: str, prop=None, **overrides) -> ResidentRecord:
    return ResidentRecord(id=ident, resident_code=f"RES-{ident:03d}", name=name, property_record=prop, **overrides)


RESIDENTS = [
    _resident(1, "alice", MAPLE, monthly_rent=Decimal("900"), repayment_status="overdue", lease_end_date=date(2024, 5, 1)),
    _resident(2, "Bob", CEDAR, monthly_rent=Decimal("1200"), lease_end_date=None),
    _resident(3, "Charlie", MAPLE, monthly_rent=Decimal("1000"), repayment_status="advance_paid"),
    _resident(4, "Alice", None, monthly_rent=Decimal("800")),
]


def test_empty_filter_is_a_no_op():
    assert filter_residents(RESIDENTS, ResidentFilter()) == RESIDENTS
    assert filter_residents(RESIDENTS) == RESIDENTS


def test_search_matches_name_code_and_property_case_insensitively():
    assert [r.id for r in filter_residents(RESIDENTS, ResidentFilter(search="ALICE"))] == [1, 4]
    assert [r.id for r in filter_residents(RESIDENTS, ResidentFilter(search="res-002"))] == [2]
    assert [r.id for r in filter_residents(RESIDENTS, ResidentFilter(search="maple"))] == [1, 3]


def test_filters_combine_conjunctively():
    criteria = ResidentFilter(city="Pune", repayment_status="overdue")
    assert [r.id for r in filter_residents(RESIDENTS, criteria)] == [1]
    assert [r.id for r in filter_residents(RESIDENTS, ResidentFilter(property_name="Cedar Heights"))] == [2]


def test_resident_without_property_never_matches_city_filter():
    assert 4 not in [r.id for r in filter_residents(RESIDENTS, ResidentFilter(city="Pune"))]


def test_sort_by_name_is_case_insensitive_and_idempotent():
    once = sort_residents(RESIDENTS, SortState("name", "asc"))
    assert [r.name.lower() for r in once] == ["alice", "alice", "bob", "charlie"]
    assert sort_residents(once, SortState("name", "asc")) == once


def test_sort_by_name_ignores_accents():
    residents = [_resident(1, "Zoe"), _resident(2, "Émile"), _resident(3, "emma"), _resident(4, "Ángel")]

    ordered = sort_residents(residents, SortState("name", "asc"))

    assert [r.name for r in ordered] == ["Ángel", "Émile", "emma", "Zoe"]
    assert collation_key("Émile") == collation_key("emile")


@pytest.mark.parametrize("field", ["name", "monthly_rent"])
def test_toggling_direction_twice_restores_the_order(field):
    state = SortState(field, "asc")
    ascending = sort_residents(RESIDENTS, state)

    descending = sort_residents(ascending, state.select(field))
    restored = sort_residents(descending, state.select(field).select(field))

    assert [r.id for r in descending] == [r.id for r in reversed(ascending)]
    assert restored == ascending


def test_missing_dates_sort_as_oldest():
    ordered = sort_residents(RESIDENTS, SortState("lease_end_date", "asc"))
    assert ordered[-1].id == 1


def test_sort_by_rent_descending():
    ordered = sort_residents(RESIDENTS, SortState("monthly_rent", "desc"))
    assert [r.id for r in ordered] == [2, 3, 1, 4]


def test_unknown_sort_field_is_rejected():
    with pytest.raises(ValueError):
        sort_residents(RESIDENTS, SortState("nickname", "asc"))  # type: ignore[arg-type]


def test_selecting_sort_field_toggles_direction():
    state = SortState()
    assert state.select("name") == SortState("name", "desc")
    assert state.select("name").select("name") == state
    assert SortState("name", "desc").select("monthly_rent") == SortState("monthly_rent", "asc")


def test_pages_partition_the_list():
    items = list(range(60))
    pages = [paginate(items, page, 25) for page in (1, 2, 3)]

    assert [len(p.items) for p in pages] == [25, 25, 10]
    assert sum((p.items for p in pages), []) == items
    assert pages[0].total_pages == 3
    assert pages[1].start_index == 25
    assert paginate(items, 4, 25).items == []


def test_empty_list_has_zero_pages():
    page = paginate([], 1, 25)
    assert page.total_pages == 0
    assert page.items == []


def test_page_size_must_be_an_allowed_option():
    with pytest.raises(ValueError):
        paginate(list(range(10)), 1, 30)
    with pytest.raises(ValueError):
        paginate(list(range(10)), 0, 25)


def test_changing_page_size_resets_to_first_page():
    state = PageState(page=3, page_size=25)
    assert state.with_page_size(50) == PageState(page=1, page_size=50)
    with pytest.raises(ValueError):
        state.with_page_size(10)


def test_default_page_holds_five_hundred():
    page = query_residents(RESIDENTS)
    assert page.page_size == 500
    assert page.total_items == 4


def test_distinct_cities_and_property_names():
    properties = [MAPLE, CEDAR, PropertyRecord(id=3, property_code="P-3", name="Oak", address="3", city="Pune")]
    assert distinct_cities(properties) == ["Mumbai", "Pune"]
    assert property_names(properties) == ["Maple Court", "Cedar Heights", "Oak"]
