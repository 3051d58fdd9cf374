from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..api.dependencies import get_current_session, get_db
from ..auth.session import AuthSession
from ..models.models import Disbursement, Repayment
from ..schemas.schemas import (
    DisbursementCreate,
    DisbursementRead,
    DisbursementUpdate,
    RepaymentCreate,
    RepaymentRead,
    RepaymentStatusUpdate,
    RepaymentUpdate,
)
from ..services import ledger

router = APIRouter()


@router.get("/residents/{resident_id}/disbursements", response_model=List[DisbursementRead])
def list_disbursements(
    resident_id: int,
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> List[Disbursement]:
    return ledger.list_disbursements(db, resident_id)


@router.post("/residents/{resident_id}/disbursements", response_model=DisbursementRead, status_code=201)
def create_disbursement(
    resident_id: int,
    payload: DisbursementCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Disbursement:
    return ledger.create_disbursement(db, session, resident_id, payload)


@router.put("/disbursements/{disbursement_id}", response_model=DisbursementRead)
def update_disbursement(
    disbursement_id: int,
    payload: DisbursementUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Disbursement:
    return ledger.update_disbursement(db, session, disbursement_id, payload)


@router.delete("/disbursements/{disbursement_id}", status_code=204)
def delete_disbursement(
    disbursement_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Response:
    ledger.delete_disbursement(db, session, disbursement_id)
    return Response(status_code=204)


@router.get("/residents/{resident_id}/repayments", response_model=List[RepaymentRead])
def list_repayments(
    resident_id: int,
    db: Session = Depends(get_db),
    _: AuthSession = Depends(get_current_session),
) -> List[Repayment]:
    return ledger.list_repayments(db, resident_id)


@router.post("/residents/{resident_id}/repayments", response_model=RepaymentRead, status_code=201)
def create_repayment(
    resident_id: int,
    payload: RepaymentCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Repayment:
    return ledger.create_repayment(db, session, resident_id, payload)


@router.put("/repayments/{repayment_id}", response_model=RepaymentRead)
def update_repayment(
    repayment_id: int,
    payload: RepaymentUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Repayment:
    return ledger.update_repayment(db, session, repayment_id, payload)


@router.patch("/repayments/{repayment_id}/status", response_model=RepaymentRead)
def update_repayment_status(
    repayment_id: int,
    payload: RepaymentStatusUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Repayment:
    return ledger.update_repayment_status(db, session, repayment_id, payload)


@router.delete("/repayments/{repayment_id}", status_code=204)
def delete_repayment(
    repayment_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Response:
    ledger.delete_repayment(db, session, repayment_id)
    return Response(status_code=204)
