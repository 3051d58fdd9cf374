import sys
from collections.abc import Callable, Generator
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from resident_ledger.config import Base  # noqa: E402
import resident_ledger.auth.jwt as app_jwt  # noqa: E402
import resident_ledger.config as app_config  # noqa: E402
from resident_ledger.auth.jwt import get_password_hash  # noqa: E402
from resident_ledger.auth.session import AuthSession  # noqa: E402
from resident_ledger.constants import ROLE_ADMIN, ROLE_VIEWER  # noqa: E402
# Import the full models module so all tables register with Base metadata.
from resident_ledger.models import models as _all_models  # noqa: E402,F401
from resident_ledger.models.models import (  # noqa: E402
    Disbursement,
    Property,
    Repayment,
    Resident,
    User,
    UserProfile,
)
from resident_ledger.services.query_cache import query_cache  # noqa: E402
from resident_ledger.services.storage import storage_service  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _configure_global_test_db(tmp_path_factory):
    """Point the app-wide SessionLocal/engine at a throwaway database with all tables."""
    db_dir = tmp_path_factory.mktemp("globaldb")
    engine = create_engine(f"sqlite:///{db_dir / 'app.db'}")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    app_config.SessionLocal = SessionLocal
    app_config.engine = engine
    app_jwt.SessionLocal = SessionLocal
    yield
    engine.dispose()


@pytest.fixture(autouse=True)
def _isolated_state(tmp_path, monkeypatch):
    """Every test starts with an empty query cache and its own upload directory."""
    query_cache.clear()
    monkeypatch.setattr(storage_service, "upload_root", tmp_path / "uploads")
    yield
    query_cache.clear()


@pytest.fixture
def db_session(tmp_path) -> Generator[Session, None, None]:
    """Provide a fresh SQLite database for each test."""
    db_path = tmp_path / "test.db"
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def create_user(db_session: Session) -> Callable[..., User]:
    def _create(email: str = "user@example.com", role: Optional[str] = ROLE_ADMIN) -> User:
        user = User(email=email, hashed_password=get_password_hash("changeme"))
        if role is not None:
            user.profile = UserProfile(email=email, role=role)
        db_session.add(user)
        db_session.commit()
        return user

    return _create


@pytest.fixture
def admin_session(create_user) -> AuthSession:
    user = create_user(email="admin@example.com", role=ROLE_ADMIN)
    return AuthSession(user_id=user.id, email=user.email, role=ROLE_ADMIN)


@pytest.fixture
def viewer_session(create_user) -> AuthSession:
    user = create_user(email="viewer@example.com", role=ROLE_VIEWER)
    return AuthSession(user_id=user.id, email=user.email, role=ROLE_VIEWER)


@pytest.fixture
def create_property(db_session: Session) -> Callable[..., Property]:
    counter = {"value": 0}

    def _create(name: str = "Maple Court", city: str = "Pune") -> Property:
        counter["value"] += 1
        item = Property(
            property_code=f"PROP-{counter['value']:03d}",
            name=name,
            address=f"{counter['value']} Main Road",
            city=city,
            number_of_units=20,
        )
        db_session.add(item)
        db_session.commit()
        return item

    return _create


@pytest.fixture
def create_resident(db_session: Session) -> Callable[..., Resident]:
    counter = {"value": 0}

    def _create(
        name: str = "Resident",
        property_row: Optional[Property] = None,
        monthly_rent: str = "1000.00",
        total_advance_disbursed: str = "0",
        repayment_status: str = "on_time",
        lease_end_date: Optional[date] = None,
    ) -> Resident:
        counter["value"] += 1
        resident = Resident(
            resident_code=f"RES-{counter['value']:04d}",
            name=f"{name} {counter['value']}",
            property_id=property_row.id if property_row else None,
            monthly_rent=Decimal(monthly_rent),
            total_advance_disbursed=Decimal(total_advance_disbursed),
            repayment_status=repayment_status,
            lease_start_date=date(2024, 1, 1),
            lease_end_date=lease_end_date,
        )
        db_session.add(resident)
        db_session.commit()
        return resident

    return _create


@pytest.fixture
def add_disbursement(db_session: Session) -> Callable[..., Disbursement]:
    def _create(resident: Resident, amount: str, on: date = date(2024, 1, 15), code: str = "D-1") -> Disbursement:
        row = Disbursement(
            disbursement_code=code,
            resident_id=resident.id,
            date=on,
            amount=Decimal(amount),
            type="1st Tranche",
        )
        db_session.add(row)
        db_session.commit()
        return row

    return _create


@pytest.fixture
def add_repayment(db_session: Session) -> Callable[..., Repayment]:
    def _create(
        resident: Resident,
        rent_amount: str,
        status: str = "pending",
        amount_paid: str = "0",
        due: date = date(2024, 2, 1),
        code: str = "R-1",
    ) -> Repayment:
        row = Repayment(
            repayment_code=code,
            resident_id=resident.id,
            month=due.strftime("%B %Y"),
            due_date=due,
            rent_amount=Decimal(rent_amount),
            status=status,
            amount_paid=Decimal(amount_paid),
        )
        db_session.add(row)
        db_session.commit()
        return row

    return _create

