from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Dict, List, Optional

from ..core.enums import AttendanceStatus
from ..employees.model import Employee


@dataclass(frozen=True)
class AttendanceRecord:
    attendance_id: int
    employee_id: int
    work_date: date
    clock_in_time: Optional[time]
    status: AttendanceStatus
    is_manual: bool
    note: Optional[str] = None
    entered_by: Optional[str] = None
    employee_name: Optional[str] = None
    national_id: Optional[str] = None


@dataclass(frozen=True)
class ScannerRow:
    """One row of the fingerprint scanner export (columns A-E)."""

    badge_number: int
    national_id: str
    name: str
    time: str
    status: str


@dataclass
class ScanImportResult:
    work_date: date
    success: int = 0
    failed: int = 0
    not_found: int = 0
    duplicate: int = 0
    processed: List[str] = field(default_factory=list)
    not_matched: List[ScannerRow] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    missing_employees: List[Employee] = field(default_factory=list)


@dataclass(frozen=True)
class BulkFailure:
    employee_id: int
    error: str


@dataclass
class BulkManualResult:
    success: int = 0
    failed: int = 0
    duplicate: int = 0
    created: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    failures: List[BulkFailure] = field(default_factory=list)


@dataclass(frozen=True)
class AttendanceQuery:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    employee_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    is_manual: Optional[bool] = None


@dataclass(frozen=True)
class AttendanceSummary:
    start_date: date
    end_date: date
    employee_id: Optional[int]
    counts: Dict[str, int]


@dataclass(frozen=True)
class ExportRow:
    work_date: date
    national_id: str
    name: str
    clock_in: str
    status: str
    source: str
    note: str
    remark: str


@dataclass(frozen=True)
class RekapRow:
    """One row of the scanner's period recap (columns A-K), kept as text."""

    emp_no: str
    badge_number: str
    national_id: str
    name: str
    auto_assign: str
    work_date: str
    work_hours: str
    clock_in: str
    clock_out: str
    scan_in: str
    scan_out: str


@dataclass(frozen=True)
class RekapItem:
    emp_no: str
    badge_number: str
    employee_id: Optional[int]
    national_id: str
    name: str
    work_date: str
    clock_in: Optional[str]
    clock_out: Optional[str]
    work_hours: Optional[str]
    scan_in: Optional[str]
    scan_out: Optional[str]
    note: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.employee_id is not None


@dataclass(frozen=True)
class RekapUnmatched:
    emp_no: str
    name: str
    national_id: str


@dataclass
class RekapResult:
    items: List[RekapItem] = field(default_factory=list)
    not_matched: List[RekapUnmatched] = field(default_factory=list)
    total_rows: int = 0
    matched_rows: int = 0
    not_matched_rows: int = 0


@dataclass(frozen=True)
class RekapReportRow:
    no: int
    badge_number: str
    emp_no: str
    national_id: str
    name: str
    work_date: str
    scan_in: str
    scan_out: str
    work_hours: str
    note: str
    matched: bool


@dataclass(frozen=True)
class RekapReport:
    """Printable recap: the rows plus headline counts, rendered by the client."""

    period_label: Optional[str]
    generated_at: datetime
    total_records: int
    total_employees: int
    total_dates: int
    rows: List[RekapReportRow]
