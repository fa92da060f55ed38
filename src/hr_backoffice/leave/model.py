from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Sequence

from ..core.enums import LeaveKind, LeaveYearKind


@dataclass(frozen=True)
class LeaveYear:
    """Annual-leave entitlement of one employee for one calendar year.

    ``remaining`` always equals ``total_entitlement - used``; ``used`` may
    exceed the entitlement, leaving ``remaining`` negative.
    """

    leave_year_id: int
    employee_id: int
    year: int
    base_allowance: int
    carry_forward: int
    total_entitlement: int
    used: int
    remaining: int
    kind: LeaveYearKind


@dataclass(frozen=True)
class LeaveEntry:
    leave_entry_id: int
    employee_id: int
    leave_year_id: int
    year: int
    kind: LeaveKind
    reason: str
    start_date: date
    end_date: date
    days_count: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LeaveYearDetail:
    leave_year: LeaveYear
    entries: Sequence[LeaveEntry] = ()


@dataclass(frozen=True)
class LeaveYearRow:
    """Leave year joined with the employee it belongs to, for rollups."""

    leave_year: LeaveYear
    national_id: str
    employee_name: str
    department: Optional[str] = None


@dataclass(frozen=True)
class GenerationFailure:
    employee_id: int
    error: str


@dataclass
class BulkGenerationResult:
    year: int
    succeeded: List[int] = field(default_factory=list)
    failed: List[GenerationFailure] = field(default_factory=list)


@dataclass(frozen=True)
class LeaveEntryQuery:
    employee_id: Optional[int] = None
    kind: Optional[LeaveKind] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class ReasonRollupRow:
    kind: LeaveKind
    reason: str
    entry_count: int
    total_days: int


@dataclass(frozen=True)
class KindSummaryRow:
    kind: LeaveKind
    entry_count: int
    total_days: int
