from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..api.dependencies import get_current_session, get_db, resident_filter, resident_sort
from ..auth.session import AuthSession
from ..services.audit import audit_log
from ..services.query import ResidentFilter, SortState, filter_residents, sort_residents
from ..services.reports import generate_residents_report, generate_statement_report
from ..services.residents import list_residents, resident_statement

router = APIRouter()


def _csv_response(filename: str, content: str) -> Response:
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-store",
    }
    return Response(content=content, media_type="text/csv", headers=headers)


def _audit_report_access(db: Session, session: AuthSession, action: str, target: str) -> None:
    audit_log(
        db_session=db,
        actor_user_id=session.user_id,
        action=action,
        target_entity_type="Report",
        target_entity_id=target,
    )


@router.get("/reports/residents.csv")
def export_residents(
    criteria: ResidentFilter = Depends(resident_filter),
    sort: SortState = Depends(resident_sort),
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Response:
    residents = sort_residents(filter_residents(list_residents(db), criteria), sort)
    report = generate_residents_report(residents)
    _audit_report_access(db, session, "reports.residents", "residents")
    return _csv_response(report.filename, report.content)


@router.get("/reports/residents/{resident_id}/statement.csv")
def export_statement(
    resident_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
) -> Response:
    report = generate_statement_report(resident_statement(db, resident_id))
    _audit_report_access(db, session, "reports.statement", str(resident_id))
    return _csv_response(report.filename, report.content)
