from __future__ import annotations

from enum import Enum


class EmployeeStatus(str, Enum):
    """Lifecycle of an employee record; INACTIVE is the soft-delete state."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class LeaveYearKind(str, Enum):
    """How the base allowance of a leave year was derived from tenure."""

    PROBATION = "PROBATION"
    FULL = "FULL"
    PRORATE = "PRORATE"


class LeaveKind(str, Enum):
    """Kinds of recorded leave. Only ANNUAL consumes the leave balance."""

    ANNUAL = "ANNUAL"
    SICK = "SICK"
    PERSONAL = "PERSONAL"
    BASE = "BASE"
    UNEXCUSED = "UNEXCUSED"
    OTHER = "OTHER"


class LeaveBalanceOperation(str, Enum):
    ADD = "ADD"
    SUBTRACT = "SUBTRACT"


class AttendanceStatus(str, Enum):
    """Attendance status stored per (employee, date)."""

    PRESENT = "PRESENT"
    SICK = "SICK"
    PERMISSION = "PERMISSION"
    WORK_FROM_HOME = "WORK_FROM_HOME"
    UNEXCUSED = "UNEXCUSED"
    LEAVE = "LEAVE"
    LEAVE_BASE = "LEAVE_BASE"
    SECURITY_DUTY = "SECURITY_DUTY"
    FIELD_ASSIGNMENT = "FIELD_ASSIGNMENT"
    PENDING_SCAN = "PENDING_SCAN"


class DiscountType(str, Enum):
    FIXED_AMOUNT = "FIXED_AMOUNT"
    PERCENT = "PERCENT"


class ItemCategory(str, Enum):
    OFFICE_SUPPLIES = "OFFICE_SUPPLIES"
    MEDICINE = "MEDICINE"


class DeleteOutcome(str, Enum):
    """Result of deleting a reference record that may still be in use."""

    DEACTIVATED = "DEACTIVATED"
    DELETED = "DELETED"
