from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from .records import ResidentRecord
from .rollup import StatementOfAccount, computed_totals
from .status import status_label


@dataclass
class CsvReport:
    filename: str
    content: str


def _render_csv(headers: List[str], rows: Iterable[Iterable[str]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return output.getvalue()


def _money(value: Decimal) -> str:
    return f"{Decimal(value or 0):.2f}"


def _iso(value: Optional[date]) -> str:
    return value.isoformat() if value else ""


def generate_residents_report(residents: Sequence[ResidentRecord], as_of: date | None = None) -> CsvReport:
    today = as_of or date.today()
    headers = [
        "Resident ID",
        "Name",
        "Property",
        "City",
        "Room",
        "Monthly Rent",
        "Total Disbursed",
        "Total Collected",
        "Outstanding",
        "Disbursement Status",
        "Repayment Status",
        "Current Status",
        "Lease Start",
        "Lease End",
    ]
    rows: List[List[str]] = []
    for resident in residents:
        totals = computed_totals(resident)
        rows.append(
            [
                resident.resident_code,
                resident.name,
                resident.property_name or "",
                resident.city or "",
                resident.room_number or "",
                _money(resident.monthly_rent),
                _money(totals.total_disbursed),
                _money(totals.total_collected),
                _money(totals.outstanding),
                status_label(resident.disbursement_status),
                status_label(resident.repayment_status),
                status_label(resident.current_status),
                _iso(resident.lease_start_date),
                _iso(resident.lease_end_date),
            ]
        )

    return CsvReport(filename=f"residents-{today.isoformat()}.csv", content=_render_csv(headers, rows))


def generate_statement_report(statement: StatementOfAccount, as_of: date | None = None) -> CsvReport:
    """One line per disbursement and repayment, followed by the computed and stored totals."""
    today = as_of or date.today()
    headers = ["Section", "Reference", "Date", "Detail", "Amount", "Amount Paid", "Status"]
    rows: List[List[str]] = []

    for item in statement.disbursements:
        rows.append(["Disbursement", item.disbursement_code, _iso(item.date), item.type, _money(item.amount), "", ""])
    for item in statement.repayments:
        rows.append(
            [
                "Repayment",
                item.repayment_code,
                _iso(item.due_date),
                item.month,
                _money(item.rent_amount),
                _money(item.amount_paid),
                status_label(item.status),
            ]
        )
    for label, totals in (("Computed", statement.computed), ("Stored", statement.stored)):
        rows.append(["Total", label, "", "Total Disbursed", _money(totals.total_disbursed), "", ""])
        rows.append(["Total", label, "", "Total Collected", _money(totals.total_collected), "", ""])
        rows.append(["Total", label, "", "Outstanding", _money(totals.outstanding), "", ""])

    filename = f"statement-{statement.resident_code}-{today.isoformat()}.csv"
    return CsvReport(filename=filename, content=_render_csv(headers, rows))
