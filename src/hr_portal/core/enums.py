from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    MANAGER = "manager"
    STAFF = "staff"


class OvertimeStatus(str, Enum):
    """Manager decision stored on an attendance record."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class OvertimeDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REVERT = "revert"


class ScheduleKind(str, Enum):
    WORK = "work"
    OFF = "off"


class RequestStatus(str, Enum):
    """Approval workflow status (leave requests)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AdvanceStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DEDUCTED = "deducted"


class PayType(str, Enum):
    SALARY = "salary"
    HOURLY = "hourly"

    @classmethod
    def normalize(cls, value: str | None) -> "PayType":
        """Map stored pay type labels ('Salary', 'Monthly', 'hourly', ...) to an enum."""

        v = (value or "").strip().lower()
        if v == "hourly":
            return cls.HOURLY
        return cls.SALARY


class AdjustmentType(str, Enum):
    EARNING = "earning"
    DEDUCTION = "deduction"


class RowAction(str, Enum):
    """Classification of a single imported row."""

    CREATE = "create"
    UPDATE = "update"
    NO_CHANGE = "nochange"
    ERROR = "error"


class ImportPhase(str, Enum):
    ANALYZE = "analyze"
    REVIEW = "review"
    APPLY = "apply"
    DONE = "done"
