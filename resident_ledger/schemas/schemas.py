from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, constr

NonEmptyStr = constr(strip_whitespace=True, min_length=1)

UserRole = Literal["admin", "viewer"]
PropertyStatus = Literal["active", "inactive"]
DisbursementStatus = Literal["fully_disbursed", "partial"]
RepaymentStatus = Literal["on_time", "overdue", "advance_paid"]
CurrentStatus = Literal["active", "move_out", "early_move_out", "extended"]
DisbursementType = Literal["1st Tranche", "2nd Tranche", "Final"]
PaymentMode = Literal["Manual", "NACH"]
PaymentStatus = Literal["pending", "paid", "failed", "advance"]
TicketStatus = Literal["pending", "lapsed", "resolved"]
# for models with a field named `date`
CalendarDate = date


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: UserRole
    expires_in: int


class ProfileRead(BaseModel):
    id: int
    email: str
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleUpdate(BaseModel):
    role: UserRole


class PermissionsRead(BaseModel):
    role: str
    is_admin: bool
    is_viewer: bool
    capabilities: Dict[str, bool]


class PropertyBase(BaseModel):
    property_code: NonEmptyStr
    name: NonEmptyStr
    address: NonEmptyStr
    city: NonEmptyStr
    number_of_units: int = Field(default=0, ge=0)
    property_manager_name: Optional[str] = None
    property_manager_number: Optional[str] = None
    status: PropertyStatus = "active"


class PropertyCreate(PropertyBase):
    pass


class PropertyUpdate(BaseModel):
    property_code: Optional[NonEmptyStr] = None
    name: Optional[NonEmptyStr] = None
    address: Optional[NonEmptyStr] = None
    city: Optional[NonEmptyStr] = None
    number_of_units: Optional[int] = Field(default=None, ge=0)
    property_manager_name: Optional[str] = None
    property_manager_number: Optional[str] = None
    status: Optional[PropertyStatus] = None


class PropertyRead(PropertyBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DisbursementCreate(BaseModel):
    disbursement_code: NonEmptyStr
    date: date
    amount: Decimal = Field(ge=0)
    utr_number: Optional[str] = None
    type: DisbursementType


class DisbursementUpdate(BaseModel):
    disbursement_code: Optional[NonEmptyStr] = None
    date: Optional[CalendarDate] = None
    amount: Optional[Decimal] = Field(default=None, ge=0)
    utr_number: Optional[str] = None
    type: Optional[DisbursementType] = None


class DisbursementRead(BaseModel):
    id: int
    disbursement_code: str
    resident_id: Optional[int] = None
    date: date
    amount: Decimal
    utr_number: Optional[str] = None
    type: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RepaymentCreate(BaseModel):
    repayment_code: NonEmptyStr
    month: NonEmptyStr
    due_date: date
    rent_amount: Decimal = Field(ge=0)
    payment_mode: PaymentMode = "Manual"
    status: PaymentStatus = "pending"
    actual_payment_date: Optional[date] = None
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0)
    is_advance: bool = False


class RepaymentUpdate(BaseModel):
    repayment_code: Optional[NonEmptyStr] = None
    month: Optional[NonEmptyStr] = None
    due_date: Optional[date] = None
    rent_amount: Optional[Decimal] = Field(default=None, ge=0)
    payment_mode: Optional[PaymentMode] = None
    status: Optional[PaymentStatus] = None
    actual_payment_date: Optional[date] = None
    amount_paid: Optional[Decimal] = Field(default=None, ge=0)
    is_advance: Optional[bool] = None


class RepaymentStatusUpdate(BaseModel):
    status: PaymentStatus
    amount_paid: Optional[Decimal] = Field(default=None, ge=0)
    actual_payment_date: Optional[date] = None


class RepaymentRead(BaseModel):
    id: int
    repayment_code: str
    resident_id: Optional[int] = None
    month: str
    due_date: date
    rent_amount: Decimal
    payment_mode: str
    status: str
    actual_payment_date: Optional[date] = None
    amount_paid: Decimal
    is_advance: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ResidentBase(BaseModel):
    resident_code: NonEmptyStr
    name: NonEmptyStr
    email: Optional[str] = None
    phone: Optional[str] = None
    property_id: Optional[int] = None
    room_number: Optional[str] = None
    relationship_manager: Optional[str] = None
    rm_contact: Optional[str] = None
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    lock_in_period: int = Field(default=0, ge=0)
    monthly_rent: Decimal = Field(default=Decimal("0"), ge=0)
    security_deposit: Decimal = Field(default=Decimal("0"), ge=0)
    total_advance_disbursed: Decimal = Field(default=Decimal("0"), ge=0)
    disbursement_status: DisbursementStatus = "partial"
    repayment_status: RepaymentStatus = "on_time"
    current_status: CurrentStatus = "active"


class ResidentCreate(ResidentBase):
    pass


class ResidentUpdate(BaseModel):
    resident_code: Optional[NonEmptyStr] = None
    name: Optional[NonEmptyStr] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    property_id: Optional[int] = None
    room_number: Optional[str] = None
    relationship_manager: Optional[str] = None
    rm_contact: Optional[str] = None
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    lock_in_period: Optional[int] = Field(default=None, ge=0)
    monthly_rent: Optional[Decimal] = Field(default=None, ge=0)
    security_deposit: Optional[Decimal] = Field(default=None, ge=0)
    total_advance_disbursed: Optional[Decimal] = Field(default=None, ge=0)
    disbursement_status: Optional[DisbursementStatus] = None
    repayment_status: Optional[RepaymentStatus] = None
    current_status: Optional[CurrentStatus] = None


class ResidentRead(BaseModel):
    id: int
    resident_code: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    property_id: Optional[int] = None
    room_number: Optional[str] = None
    relationship_manager: Optional[str] = None
    rm_contact: Optional[str] = None
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    lock_in_period: int
    monthly_rent: Decimal
    security_deposit: Decimal
    total_advance_disbursed: Decimal
    # stored values; repayment_status may be a legacy code outside the enum
    disbursement_status: str
    repayment_status: str
    current_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # ORM rows expose `property`, domain records `property_record`
    property: Optional[PropertyRead] = Field(
        default=None, validation_alias=AliasChoices("property", "property_record")
    )
    disbursements: List[DisbursementRead] = []
    repayments: List[RepaymentRead] = []

    model_config = ConfigDict(from_attributes=True)


class ResidentPage(BaseModel):
    items: List[ResidentRead]
    page: int
    page_size: int
    total_items: int
    total_pages: int
    sort: str
    direction: str


class ResidentTotalsRead(BaseModel):
    total_disbursed: Decimal
    total_collected: Decimal
    outstanding: Decimal
    package_amount: Decimal
    disbursement_pending: Decimal

    model_config = ConfigDict(from_attributes=True)


class StatementRead(BaseModel):
    resident_id: int
    resident_code: str
    name: str
    computed: ResidentTotalsRead
    stored: ResidentTotalsRead
    snapshot_matches: bool
    disbursements: List[DisbursementRead]
    repayments: List[RepaymentRead]

    model_config = ConfigDict(from_attributes=True)


class DashboardStatsRead(BaseModel):
    total_disbursed: Decimal
    total_collected: Decimal
    total_outstanding: Decimal
    total_residents: int
    overdue_count: int
    advance_count: int
    on_time_count: int
    active_count: int
    inactive_count: int
    unrecognized_status_count: int

    model_config = ConfigDict(from_attributes=True)


class TicketCreate(BaseModel):
    title: NonEmptyStr
    description: str = ""
    due_date: date


class TicketCommentCreate(BaseModel):
    content: NonEmptyStr


class TicketCommentRead(BaseModel):
    id: int
    ticket_id: int
    content: str
    created_by: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TicketRead(BaseModel):
    id: int
    resident_id: int
    title: str
    description: str
    status: TicketStatus
    due_date: date
    created_by: str
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None
    comments: List[TicketCommentRead] = []


class NoteCreate(BaseModel):
    content: NonEmptyStr


class NoteUpdate(BaseModel):
    content: NonEmptyStr


class NoteRead(BaseModel):
    id: int
    resident_id: int
    content: str
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ResidentDocumentRead(BaseModel):
    id: int
    resident_id: int
    filename: str
    content_type: str
    file_size: int
    uploaded_by_user_id: Optional[int] = None
    created_at: datetime
    download_url: str
