#!/usr/bin/env python
"""
Seed script to populate the database with sample properties and residents for local development.

Usage:
    python scripts/seed_data.py --residents 10
"""

import argparse
from datetime import date, timedelta
from decimal import Decimal

from resident_ledger.auth.jwt import get_password_hash
from resident_ledger.config import Base, SessionLocal, engine
from resident_ledger.constants import ROLE_ADMIN, ROLE_VIEWER
from resident_ledger.models.models import Disbursement, Property, Repayment, Resident, User, UserProfile

CITIES = ("Bengaluru", "Mumbai", "Pune")


def create_user(session, email: str, role: str) -> User:
    user = session.query(User).filter(User.email == email).first()
    if user:
        return user
    user = User(email=email, hashed_password=get_password_hash("changeme"))
    user.profile = UserProfile(email=email, role=role)
    session.add(user)
    session.flush()
    return user


def create_properties(session) -> list:
    properties = []
    for index, city in enumerate(CITIES, start=1):
        code = f"PROP-{index:03d}"
        existing = session.query(Property).filter(Property.property_code == code).first()
        if existing:
            properties.append(existing)
            continue
        item = Property(
            property_code=code,
            name=f"{city} Residency",
            address=f"{index * 10} Main Road",
            city=city,
            number_of_units=40,
            property_manager_name=f"Manager {index}",
        )
        session.add(item)
        properties.append(item)
    session.flush()
    return properties


def create_resident_bundle(session, index: int, property_row: Property) -> None:
    today = date.today()
    rent = Decimal("1500.00")
    resident = Resident(
        resident_code=f"RES-{index:04d}",
        name=f"Test Resident {index}",
        email=f"resident{index}@example.com",
        property_id=property_row.id,
        room_number=f"{100 + index}",
        lease_start_date=today - timedelta(days=180),
        lease_end_date=today + timedelta(days=180 if index % 4 else -30),
        lock_in_period=6,
        monthly_rent=rent,
        security_deposit=rent * 2,
        total_advance_disbursed=rent * 2,
        disbursement_status="fully_disbursed",
        repayment_status=("on_time", "overdue", "advance_paid")[index % 3],
    )
    session.add(resident)
    session.flush()

    for tranche, offset in (("1st Tranche", 150), ("2nd Tranche", 120)):
        session.add(
            Disbursement(
                disbursement_code=f"D-{index:04d}-{offset}",
                resident_id=resident.id,
                date=today - timedelta(days=offset),
                amount=rent,
                type=tranche,
            )
        )
    for month in range(3):
        due = today - timedelta(days=30 * month)
        paid = month > 0
        session.add(
            Repayment(
                repayment_code=f"R-{index:04d}-{month}",
                resident_id=resident.id,
                month=due.strftime("%B %Y"),
                due_date=due,
                rent_amount=rent,
                status="paid" if paid else "pending",
                amount_paid=rent if paid else Decimal("0"),
                actual_payment_date=due if paid else None,
            )
        )


def seed_database(residents: int) -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        create_user(session, "admin@example.com", ROLE_ADMIN)
        create_user(session, "viewer@example.com", ROLE_VIEWER)
        properties = create_properties(session)

        start_index = session.query(Resident).count() + 1
        targets = max(residents, 0)
        for offset in range(targets):
            create_resident_bundle(session, start_index + offset, properties[offset % len(properties)])

        session.commit()
        print(f"Seed complete. Created {targets} residents (admin/viewer password: 'changeme').")


def main():
    parser = argparse.ArgumentParser(description="Seed the resident ledger with sample data.")
    parser.add_argument("--residents", type=int, default=10, help="Number of residents to create")
    args = parser.parse_args()
    seed_database(args.residents)


if __name__ == "__main__":
    main()
