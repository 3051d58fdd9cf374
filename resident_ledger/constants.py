ROLE_ADMIN = "admin"
ROLE_VIEWER = "viewer"
USER_ROLES = (ROLE_ADMIN, ROLE_VIEWER)
DEFAULT_ROLE = ROLE_VIEWER

PERMISSION_DENIED_MESSAGE = "You do not have permission to perform this action."

PROPERTY_STATUSES = ("active", "inactive")
DISBURSEMENT_STATUSES = ("fully_disbursed", "partial")
REPAYMENT_STATUSES = ("on_time", "overdue", "advance_paid")
CURRENT_STATUSES = ("active", "move_out", "early_move_out", "extended")
DISBURSEMENT_TYPES = ("1st Tranche", "2nd Tranche", "Final")
PAYMENT_MODES = ("Manual", "NACH")
PAYMENT_STATUSES = ("pending", "paid", "failed", "advance")

# Repayment statuses that count towards money collected / money still owed
COLLECTED_PAYMENT_STATUSES = frozenset({"paid", "advance"})
OUTSTANDING_PAYMENT_STATUSES = frozenset({"pending", "failed"})

TICKET_STATUS_PENDING = "pending"
TICKET_STATUS_LAPSED = "lapsed"
TICKET_STATUS_RESOLVED = "resolved"
STORED_TICKET_STATUSES = (TICKET_STATUS_PENDING, TICKET_STATUS_RESOLVED)

PAGE_SIZE_OPTIONS = (25, 50, 100, 200, 500)
DEFAULT_PAGE_SIZE = 500

STATUS_LABELS = {
    "active": "Active",
    "inactive": "Inactive",
    "fully_disbursed": "Fully Disbursed",
    "partial": "Partial",
    "on_time": "On Time",
    "overdue": "Overdue",
    "advance_paid": "Advance Paid",
    "move_out": "Move Out",
    "early_move_out": "Early Move Out",
    "extended": "Extended",
    "pending": "Pending",
    "paid": "Paid",
    "failed": "Failed",
    "advance": "Advance",
    "lapsed": "Lapsed",
    "resolved": "Resolved",
}
