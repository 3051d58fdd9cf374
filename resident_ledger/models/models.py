from datetime import datetime, timezone
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship as orm_relationship

from ..config import Base
from ..constants import DEFAULT_ROLE


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    profile = orm_relationship("UserProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    audit_logs = orm_relationship("AuditLog", back_populates="actor")


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String, nullable=False)
    role = Column(String, nullable=False, default=DEFAULT_ROLE)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = orm_relationship("User", back_populates="profile")


class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    jti = Column(String, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    revoked_at = Column(DateTime, default=utcnow, nullable=False)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, default=utcnow, index=True, nullable=False)
    actor_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String, nullable=False)
    target_entity_type = Column(String, nullable=True)
    target_entity_id = Column(String, nullable=True)
    before = Column(Text, nullable=True)
    after = Column(Text, nullable=True)

    actor = orm_relationship("User", back_populates="audit_logs")


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    property_code = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    city = Column(String, nullable=False, index=True)
    number_of_units = Column(Integer, nullable=False, default=0)
    property_manager_name = Column(String, nullable=True)
    property_manager_number = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active")
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    residents = orm_relationship("Resident", back_populates="property")


class Resident(Base):
    __tablename__ = "residents"

    id = Column(Integer, primary_key=True, index=True)
    resident_code = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True)
    room_number = Column(String, nullable=True)
    relationship_manager = Column(String, nullable=True)
    rm_contact = Column(String, nullable=True)
    lease_start_date = Column(Date, nullable=True)
    lease_end_date = Column(Date, nullable=True)
    lock_in_period = Column(Integer, nullable=False, default=0)
    monthly_rent = Column(Numeric(12, 2), nullable=False, default=0)
    security_deposit = Column(Numeric(12, 2), nullable=False, default=0)
    total_advance_disbursed = Column(Numeric(12, 2), nullable=False, default=0)
    disbursement_status = Column(String, nullable=False, default="partial")
    repayment_status = Column(String, nullable=False, default="on_time")
    current_status = Column(String, nullable=False, default="active")
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    property = orm_relationship("Property", back_populates="residents")
    disbursements = orm_relationship(
        "Disbursement",
        back_populates="resident",
        cascade="all, delete-orphan",
        order_by="Disbursement.date.desc()",
    )
    repayments = orm_relationship(
        "Repayment",
        back_populates="resident",
        cascade="all, delete-orphan",
        order_by="Repayment.due_date.desc()",
    )
    tickets = orm_relationship(
        "Ticket",
        back_populates="resident",
        cascade="all, delete-orphan",
        order_by="Ticket.created_at.desc()",
    )
    notes = orm_relationship(
        "Note",
        back_populates="resident",
        cascade="all, delete-orphan",
        order_by="Note.created_at.desc()",
    )
    documents = orm_relationship("ResidentDocument", back_populates="resident", cascade="all, delete-orphan")


class Disbursement(Base):
    __tablename__ = "disbursements"

    id = Column(Integer, primary_key=True, index=True)
    disbursement_code = Column(String, nullable=False, index=True)
    resident_id = Column(Integer, ForeignKey("residents.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    utr_number = Column(String, nullable=True)
    type = Column(String, nullable=False, default="1st Tranche")
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    resident = orm_relationship("Resident", back_populates="disbursements")


class Repayment(Base):
    __tablename__ = "repayments"

    id = Column(Integer, primary_key=True, index=True)
    repayment_code = Column(String, nullable=False, index=True)
    resident_id = Column(Integer, ForeignKey("residents.id", ondelete="CASCADE"), nullable=False, index=True)
    month = Column(String, nullable=False)
    due_date = Column(Date, nullable=False)
    rent_amount = Column(Numeric(12, 2), nullable=False)
    payment_mode = Column(String, nullable=False, default="Manual")
    status = Column(String, nullable=False, default="pending")
    actual_payment_date = Column(Date, nullable=True)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    is_advance = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    resident = orm_relationship("Resident", back_populates="repayments")


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    resident_id = Column(Integer, ForeignKey("residents.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String, nullable=False, default="pending")
    due_date = Column(Date, nullable=False)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    resident = orm_relationship("Resident", back_populates="tickets")
    comments = orm_relationship(
        "TicketComment",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketComment.created_at.asc(), TicketComment.id.asc()",
    )


class TicketComment(Base):
    __tablename__ = "ticket_comments"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    ticket = orm_relationship("Ticket", back_populates="comments")


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    resident_id = Column(Integer, ForeignKey("residents.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    resident = orm_relationship("Resident", back_populates="notes")


class ResidentDocument(Base):
    __tablename__ = "resident_documents"

    id = Column(Integer, primary_key=True, index=True)
    resident_id = Column(Integer, ForeignKey("residents.id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String, nullable=False)
    content_type = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    storage_path = Column(String, nullable=False)
    uploaded_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    resident = orm_relationship("Resident", back_populates="documents")
