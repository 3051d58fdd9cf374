"""Typed records handed from the persistence layer to the domain rules.

ORM rows are converted exactly once, here, so that the roll-up, status and
query modules only ever see plain immutable values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generic, Optional, Tuple, TypeVar, Union

from ..models.models import Disbursement, Property, Repayment, Resident

T = TypeVar("T")


def as_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class PropertyRecord:
    id: int
    property_code: str
    name: str
    address: str
    city: str
    number_of_units: int = 0
    property_manager_name: Optional[str] = None
    property_manager_number: Optional[str] = None
    status: str = "active"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class DisbursementRecord:
    id: int
    disbursement_code: str
    date: date
    amount: Decimal
    type: str
    utr_number: Optional[str] = None


@dataclass(frozen=True)
class RepaymentRecord:
    id: int
    repayment_code: str
    month: str
    due_date: date
    rent_amount: Decimal
    status: str
    payment_mode: str = "Manual"
    amount_paid: Decimal = Decimal("0")
    actual_payment_date: Optional[date] = None
    is_advance: bool = False


@dataclass(frozen=True)
class ResidentRecord:
    id: int
    resident_code: str
    name: str
    monthly_rent: Decimal = Decimal("0")
    total_advance_disbursed: Decimal = Decimal("0")
    repayment_status: str = "on_time"
    disbursement_status: str = "partial"
    current_status: str = "active"
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    security_deposit: Decimal = Decimal("0")
    lock_in_period: int = 0
    room_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    relationship_manager: Optional[str] = None
    rm_contact: Optional[str] = None
    property_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    property_record: Optional[PropertyRecord] = None
    disbursements: Tuple[DisbursementRecord, ...] = field(default_factory=tuple)
    repayments: Tuple[RepaymentRecord, ...] = field(default_factory=tuple)

    @property
    def property_name(self) -> Optional[str]:
        return self.property_record.name if self.property_record else None

    @property
    def city(self) -> Optional[str]:
        return self.property_record.city if self.property_record else None


class FetchError(RuntimeError):
    """Raised when an ``Err`` result is unwrapped."""


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: bool = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    message: str
    ok: bool = False

    def unwrap(self) -> Any:
        raise FetchError(self.message)


Result = Union[Ok[T], Err]


def property_record(row: Property) -> PropertyRecord:
    return PropertyRecord(
        id=row.id,
        property_code=row.property_code,
        name=row.name,
        address=row.address,
        city=row.city,
        number_of_units=row.number_of_units or 0,
        property_manager_name=row.property_manager_name,
        property_manager_number=row.property_manager_number,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def disbursement_record(row: Disbursement) -> DisbursementRecord:
    return DisbursementRecord(
        id=row.id,
        disbursement_code=row.disbursement_code,
        date=row.date,
        amount=as_decimal(row.amount),
        type=row.type,
        utr_number=row.utr_number,
    )


def repayment_record(row: Repayment) -> RepaymentRecord:
    return RepaymentRecord(
        id=row.id,
        repayment_code=row.repayment_code,
        month=row.month,
        due_date=row.due_date,
        rent_amount=as_decimal(row.rent_amount),
        status=row.status,
        payment_mode=row.payment_mode,
        amount_paid=as_decimal(row.amount_paid),
        actual_payment_date=row.actual_payment_date,
        is_advance=bool(row.is_advance),
    )


def resident_record(row: Resident) -> ResidentRecord:
    return ResidentRecord(
        id=row.id,
        resident_code=row.resident_code,
        name=row.name,
        monthly_rent=as_decimal(row.monthly_rent),
        total_advance_disbursed=as_decimal(row.total_advance_disbursed),
        repayment_status=row.repayment_status,
        disbursement_status=row.disbursement_status,
        current_status=row.current_status,
        lease_start_date=row.lease_start_date,
        lease_end_date=row.lease_end_date,
        security_deposit=as_decimal(row.security_deposit),
        lock_in_period=row.lock_in_period or 0,
        room_number=row.room_number,
        email=row.email,
        phone=row.phone,
        relationship_manager=row.relationship_manager,
        rm_contact=row.rm_contact,
        property_id=row.property_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        property_record=property_record(row.property) if row.property else None,
        disbursements=tuple(disbursement_record(item) for item in row.disbursements),
        repayments=tuple(repayment_record(item) for item in row.repayments),
    )
