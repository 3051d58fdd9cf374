from __future__ import annotations

from datetime import date
from typing import Optional

from ..constants import (
    STATUS_LABELS,
    TICKET_STATUS_LAPSED,
    TICKET_STATUS_PENDING,
    TICKET_STATUS_RESOLVED,
)


def derive_ticket_status(stored_status: Optional[str], due_date: date, today: Optional[date] = None) -> str:
    """Map a ticket's stored status and due date to pending, lapsed or resolved.

    A resolved ticket stays resolved regardless of its due date. Otherwise the
    ticket is lapsed once its due date is strictly before ``today``; a ticket
    due today is still pending.
    """
    if stored_status == TICKET_STATUS_RESOLVED:
        return TICKET_STATUS_RESOLVED
    current = today or date.today()
    if due_date < current:
        return TICKET_STATUS_LAPSED
    return TICKET_STATUS_PENDING


def is_lease_active(lease_end_date: Optional[date], today: Optional[date] = None) -> bool:
    # No end date counts as inactive for dashboard counts.
    if lease_end_date is None:
        return False
    return lease_end_date >= (today or date.today())


def status_label(code: Optional[str]) -> str:
    if not code:
        return ""
    return STATUS_LABELS.get(code, code.replace("_", " ").title())
