"""Financial roll-ups for a single resident and for the whole portfolio.

Two per-resident views exist on purpose. ``computed_totals`` sums the live
disbursement rows, ``stored_totals`` trusts the ``total_advance_disbursed``
snapshot kept on the resident. They can disagree and both are reported.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Sequence

from ..constants import COLLECTED_PAYMENT_STATUSES, OUTSTANDING_PAYMENT_STATUSES, REPAYMENT_STATUSES
from .records import DisbursementRecord, RepaymentRecord, ResidentRecord
from .status import is_lease_active

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class ResidentTotals:
    total_disbursed: Decimal
    total_collected: Decimal
    outstanding: Decimal
    package_amount: Decimal
    disbursement_pending: Decimal


@dataclass(frozen=True)
class StatementOfAccount:
    resident_id: int
    resident_code: str
    name: str
    computed: ResidentTotals
    stored: ResidentTotals
    disbursements: List[DisbursementRecord] = field(default_factory=list)
    repayments: List[RepaymentRecord] = field(default_factory=list)

    @property
    def snapshot_matches(self) -> bool:
        return self.computed.total_disbursed == self.stored.total_disbursed


@dataclass(frozen=True)
class DashboardStats:
    total_disbursed: Decimal = ZERO
    total_collected: Decimal = ZERO
    total_outstanding: Decimal = ZERO
    total_residents: int = 0
    overdue_count: int = 0
    advance_count: int = 0
    on_time_count: int = 0
    active_count: int = 0
    inactive_count: int = 0
    unrecognized_status_count: int = 0

    @classmethod
    def zero(cls) -> "DashboardStats":
        return cls()


def sum_disbursed(disbursements: Iterable[DisbursementRecord]) -> Decimal:
    return sum((item.amount for item in disbursements), ZERO)


def sum_collected(repayments: Iterable[RepaymentRecord]) -> Decimal:
    return sum(
        (item.amount_paid for item in repayments if item.status in COLLECTED_PAYMENT_STATUSES),
        ZERO,
    )


def sum_outstanding_rent(repayments: Iterable[RepaymentRecord]) -> Decimal:
    return sum(
        (item.rent_amount for item in repayments if item.status in OUTSTANDING_PAYMENT_STATUSES),
        ZERO,
    )


def _totals(resident: ResidentRecord, total_disbursed: Decimal) -> ResidentTotals:
    collected = sum_collected(resident.repayments)
    # monthly_rent stands in for the package amount
    package_amount = resident.monthly_rent
    return ResidentTotals(
        total_disbursed=total_disbursed,
        total_collected=collected,
        outstanding=total_disbursed - collected,
        package_amount=package_amount,
        disbursement_pending=package_amount - total_disbursed,
    )


def computed_totals(resident: ResidentRecord) -> ResidentTotals:
    return _totals(resident, sum_disbursed(resident.disbursements))


def stored_totals(resident: ResidentRecord) -> ResidentTotals:
    return _totals(resident, resident.total_advance_disbursed)


def statement_of_account(resident: ResidentRecord) -> StatementOfAccount:
    return StatementOfAccount(
        resident_id=resident.id,
        resident_code=resident.resident_code,
        name=resident.name,
        computed=computed_totals(resident),
        stored=stored_totals(resident),
        disbursements=sorted(resident.disbursements, key=lambda item: item.date, reverse=True),
        repayments=sorted(resident.repayments, key=lambda item: item.due_date, reverse=True),
    )


def portfolio_stats(residents: Sequence[ResidentRecord], today: Optional[date] = None) -> DashboardStats:
    total = len(residents)
    overdue = sum(1 for resident in residents if resident.repayment_status == "overdue")
    advance = sum(1 for resident in residents if resident.repayment_status == "advance_paid")
    unrecognized = sum(1 for resident in residents if resident.repayment_status not in REPAYMENT_STATUSES)
    active = sum(1 for resident in residents if is_lease_active(resident.lease_end_date, today))
    return DashboardStats(
        total_disbursed=sum((resident.total_advance_disbursed for resident in residents), ZERO),
        total_collected=sum((sum_collected(resident.repayments) for resident in residents), ZERO),
        total_outstanding=sum((sum_outstanding_rent(resident.repayments) for resident in residents), ZERO),
        total_residents=total,
        overdue_count=overdue,
        advance_count=advance,
        # complement: unrecognized repayment statuses land in on_time_count
        on_time_count=total - overdue - advance,
        active_count=active,
        inactive_count=total - active,
        unrecognized_status_count=unrecognized,
    )


def load_dashboard_stats(
    loader: Callable[[], Sequence[ResidentRecord]], today: Optional[date] = None
) -> DashboardStats:
    """Stats over the residents ``loader`` returns; a failing loader yields all zeros."""
    try:
        residents = loader()
    except Exception:
        logger.exception("Resident fetch failed, returning empty dashboard stats")
        return DashboardStats.zero()
    logger.info("Calculating dashboard stats from %s residents", len(residents))
    stats = portfolio_stats(residents, today)
    if stats.unrecognized_status_count:
        logger.warning(
            "%s residents have an unrecognized repayment status and are counted as on time.",
            stats.unrecognized_status_count,
        )
    return stats
