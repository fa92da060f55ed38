from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import IO, Optional, Sequence

from ..common.datetime_utils import (
    day_first,
    iter_dates,
    normalize_clock_text,
    normalize_date_text,
    now_local,
    parse_clock_time,
)
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_date_range, require_int
from ..core.constants import LATE_AFTER
from ..core.enums import AttendanceStatus
from ..core.exceptions import BusinessLogicError, ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from . import spreadsheet
from .model import (
    AttendanceQuery,
    AttendanceRecord,
    AttendanceSummary,
    BulkFailure,
    BulkManualResult,
    ExportRow,
    RekapItem,
    RekapReport,
    RekapReportRow,
    RekapResult,
    RekapRow,
    RekapUnmatched,
    ScanImportResult,
    ScannerRow,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManualAttendanceInput:
    employee_id: int
    work_date: date
    status: AttendanceStatus
    note: Optional[str] = None
    entered_by: Optional[str] = None


def _is_late(record: AttendanceRecord) -> bool:
    if record.status != AttendanceStatus.PRESENT or record.clock_in_time is None:
        return False
    clock_in = record.clock_in_time
    return (clock_in.hour, clock_in.minute) > (LATE_AFTER.hour, LATE_AFTER.minute)


def _badge_number(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None


class AttendanceService:
    def __init__(self, attendance: AttendanceRepository, employees: EmployeeRepository):
        self._attendance = attendance
        self._employees = employees

    def import_scanner_rows(self, rows: Sequence[ScannerRow], work_date: date) -> ScanImportResult:
        """Turn scanner rows into PRESENT records for ``work_date``."""
        if not rows:
            raise ValidationError("The scanner file has no usable rows")
        logger.info("Importing scanner rows: date=%s rows=%d", work_date, len(rows))

        matched = self._employees.list_active_by_badge_numbers(badge_numbers=[r.badge_number for r in rows])
        by_badge = {e.badge_number: e for e in matched}
        recorded = self._attendance.employee_ids_with_record(
            work_date=work_date, employee_ids=[e.employee_id for e in matched]
        )

        result = ScanImportResult(work_date=work_date)
        for row in rows:
            employee = by_badge.get(row.badge_number)
            if employee is None:
                result.not_found += 1
                result.not_matched.append(row)
                logger.warning("No active employee for badge %s (%s)", row.badge_number, row.name)
                continue

            if employee.employee_id in recorded:
                result.duplicate += 1
                result.duplicates.append(employee.name)
                continue

            try:
                self._attendance.create(
                    employee_id=employee.employee_id,
                    work_date=work_date,
                    clock_in_time=parse_clock_time(row.time),
                    status=AttendanceStatus.PRESENT,
                    is_manual=False,
                )
            except Exception:
                logger.exception("Failed to store scanner row: employee=%s", employee.employee_id)
                result.failed += 1
                continue

            recorded.add(employee.employee_id)
            result.success += 1
            result.processed.append(employee.name)

        result.missing_employees = list(self.list_missing(work_date))
        logger.info(
            "Scanner import completed: date=%s success=%d duplicate=%d not_found=%d failed=%d missing=%d",
            work_date,
            result.success,
            result.duplicate,
            result.not_found,
            result.failed,
            len(result.missing_employees),
        )
        return result

    def import_scanner_file(self, stream: IO[bytes], work_date: date) -> ScanImportResult:
        return self.import_scanner_rows(spreadsheet.read_scanner_rows(stream), work_date)

    def list_missing(self, work_date: date) -> Sequence[Employee]:
        """Active employees with no attendance record on ``work_date``."""
        recorded = self._attendance.employee_ids_with_record(work_date=work_date)
        return [e for e in self._employees.list_active() if e.employee_id not in recorded]

    def create_manual(self, data: ManualAttendanceInput) -> AttendanceRecord:
        logger.info(
            "Creating manual attendance: employee=%s date=%s status=%s",
            data.employee_id,
            data.work_date,
            data.status.value,
        )
        employee = self._employees.get(employee_id=require_int(data.employee_id, "employee_id"))
        if not employee:
            raise NotFoundError(f"Employee {data.employee_id} not found")
        if not employee.is_active:
            raise BusinessLogicError(f"Employee {employee.employee_id} is not active")

        if self._attendance.get_for_employee_and_date(employee_id=employee.employee_id, work_date=data.work_date):
            raise ConflictError(f"Attendance for {employee.name} on {data.work_date.isoformat()} already exists")

        attendance_id = self._attendance.create(
            employee_id=employee.employee_id,
            work_date=data.work_date,
            clock_in_time=None,
            status=data.status,
            is_manual=True,
            note=optional_text(data.note),
            entered_by=optional_text(data.entered_by),
        )
        logger.info("Manual attendance created: id=%s", attendance_id)
        return self.get(attendance_id)

    def bulk_create_manual(
        self,
        employee_ids: Sequence[int],
        work_date: date,
        status: AttendanceStatus,
        *,
        note: Optional[str] = None,
        entered_by: Optional[str] = None,
    ) -> BulkManualResult:
        if not employee_ids:
            raise ValidationError("employee_ids must not be empty")
        ids = [require_int(i, "employee_id") for i in employee_ids]
        logger.info("Bulk manual attendance: employees=%d date=%s status=%s", len(ids), work_date, status.value)

        recorded = self._attendance.employee_ids_with_record(work_date=work_date, employee_ids=ids)
        result = BulkManualResult()

        for employee_id in ids:
            employee = self._employees.get(employee_id=employee_id)
            if not employee or not employee.is_active:
                result.failed += 1
                result.failures.append(BulkFailure(employee_id=employee_id, error="Employee not found or not active"))
                continue

            if employee_id in recorded:
                result.duplicate += 1
                result.duplicates.append(employee.name)
                continue

            try:
                self._attendance.create(
                    employee_id=employee_id,
                    work_date=work_date,
                    clock_in_time=None,
                    status=status,
                    is_manual=True,
                    note=optional_text(note),
                    entered_by=optional_text(entered_by),
                )
            except Exception as e:
                logger.exception("Bulk manual attendance failed: employee=%s", employee_id)
                result.failed += 1
                result.failures.append(BulkFailure(employee_id=employee_id, error=str(e)))
                continue

            recorded.add(employee_id)
            result.success += 1
            result.created.append(employee.name)

        logger.info(
            "Bulk manual attendance completed: success=%d duplicate=%d failed=%d",
            result.success,
            result.duplicate,
            result.failed,
        )
        return result

    def update(
        self,
        attendance_id: int,
        *,
        status: Optional[AttendanceStatus] = None,
        note: Optional[str] = None,
        entered_by: Optional[str] = None,
    ) -> AttendanceRecord:
        record = self.get(attendance_id)
        if not record.is_manual:
            raise BusinessLogicError("Only manually entered attendance can be changed")

        self._attendance.update(
            attendance_id=record.attendance_id,
            status=status or record.status,
            note=optional_text(note) if note is not None else record.note,
            entered_by=optional_text(entered_by) if entered_by is not None else record.entered_by,
        )
        logger.info("Attendance updated: id=%s", record.attendance_id)
        return self.get(record.attendance_id)

    def delete(self, attendance_id: int) -> AttendanceRecord:
        record = self.get(attendance_id)
        self._attendance.delete(attendance_id=record.attendance_id)
        logger.info("Attendance deleted: id=%s", record.attendance_id)
        return record

    def get(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get(attendance_id=int(attendance_id))
        if not record:
            raise NotFoundError(f"Attendance {attendance_id} not found")
        return record

    def list(
        self, query: Optional[AttendanceQuery] = None, page: Optional[PageRequest] = None
    ) -> Page[AttendanceRecord]:
        query = query or AttendanceQuery()
        if query.start_date and query.end_date:
            require_date_range(query.start_date, query.end_date)
        page = page or PageRequest()
        items, total = self._attendance.list(query=query, page=page)
        return Page.of(items, total, page)

    def summary(self, start_date: date, end_date: date, employee_id: Optional[int] = None) -> AttendanceSummary:
        require_date_range(start_date, end_date)
        counts = self._attendance.count_by_status(start_date=start_date, end_date=end_date, employee_id=employee_id)
        return AttendanceSummary(start_date=start_date, end_date=end_date, employee_id=employee_id, counts=counts)

    def export_rows(self, start_date: date, end_date: date) -> Sequence[ExportRow]:
        """One row per active employee per date, employee-major."""
        require_date_range(start_date, end_date)
        employees = sorted(self._employees.list_active(), key=lambda e: e.name)
        records = {
            (r.employee_id, r.work_date): r
            for r in self._attendance.list_between(start_date=start_date, end_date=end_date)
        }
        dates = list(iter_dates(start_date, end_date))

        rows = []
        for employee in employees:
            for day in dates:
                record = records.get((employee.employee_id, day))
                rows.append(
                    ExportRow(
                        work_date=day,
                        national_id=employee.national_id,
                        name=employee.name,
                        clock_in=record.clock_in_time.strftime("%H:%M") if record and record.clock_in_time else "-",
                        status=record.status.value if record else "-",
                        source=("Manual" if record.is_manual else "Fingerprint") if record else "-",
                        note=(record.note or "-") if record else "-",
                        remark="LATE" if record and _is_late(record) else "",
                    )
                )
        return rows

    def export_matrix(self, start_date: date, end_date: date) -> bytes:
        rows = self.export_rows(start_date, end_date)
        logger.info("Exporting attendance: %s..%s rows=%d", start_date, end_date, len(rows))
        return spreadsheet.write_attendance_export(rows)

    def process_rekap(self, rows: Sequence[RekapRow]) -> RekapResult:
        """Match recap rows to active employees by badge number.

        Nothing is stored. Unmatched rows stay in the result with the file's
        own name and national id, and are listed once per badge number.
        """
        if not rows:
            raise ValidationError("The recap file has no usable rows")
        logger.info("Processing attendance recap: rows=%d", len(rows))

        badges = {row.badge_number: _badge_number(row.badge_number) for row in rows}
        matched = self._employees.list_active_by_badge_numbers(
            badge_numbers=sorted({b for b in badges.values() if b is not None})
        )
        by_badge = {e.badge_number: e for e in matched}

        items = []
        not_matched = {}
        for row in rows:
            employee = by_badge.get(badges[row.badge_number])
            if employee is None:
                not_matched[row.badge_number] = RekapUnmatched(
                    emp_no=row.emp_no, name=row.name, national_id=row.national_id
                )
            items.append(
                RekapItem(
                    emp_no=row.emp_no,
                    badge_number=row.badge_number,
                    employee_id=employee.employee_id if employee else None,
                    national_id=employee.national_id if employee else row.national_id,
                    name=employee.name if employee else row.name,
                    work_date=normalize_date_text(row.work_date) or row.work_date,
                    clock_in=normalize_clock_text(row.clock_in),
                    clock_out=normalize_clock_text(row.clock_out),
                    work_hours=row.work_hours or None,
                    scan_in=normalize_clock_text(row.scan_in),
                    scan_out=normalize_clock_text(row.scan_out),
                )
            )
        items.sort(key=lambda item: item.name.lower())

        result = RekapResult(
            items=items,
            not_matched=list(not_matched.values()),
            total_rows=len(items),
            matched_rows=sum(1 for item in items if item.matched),
            not_matched_rows=len(not_matched),
        )
        logger.info(
            "Attendance recap processed: total=%d matched=%d not_matched=%d",
            result.total_rows,
            result.matched_rows,
            result.not_matched_rows,
        )
        return result

    def process_rekap_file(self, stream: IO[bytes]) -> RekapResult:
        return self.process_rekap(spreadsheet.read_rekap_rows(stream))

    def export_rekap(self, items: Sequence[RekapItem], period_label: Optional[str] = None) -> bytes:
        if not items:
            raise ValidationError("data must not be empty")
        logger.info("Exporting attendance recap: rows=%d", len(items))
        return spreadsheet.write_rekap_export(items, optional_text(period_label))

    def rekap_report(self, items: Sequence[RekapItem], period_label: Optional[str] = None) -> RekapReport:
        if not items:
            raise ValidationError("data must not be empty")
        return RekapReport(
            period_label=optional_text(period_label),
            generated_at=now_local(),
            total_records=len(items),
            total_employees=len({item.national_id for item in items}),
            total_dates=len({item.work_date for item in items}),
            rows=[
                RekapReportRow(
                    no=i,
                    badge_number=item.badge_number,
                    emp_no=item.emp_no,
                    national_id=item.national_id,
                    name=item.name,
                    work_date=day_first(item.work_date),
                    scan_in=item.scan_in or "-",
                    scan_out=item.scan_out or "-",
                    work_hours=item.work_hours or "-",
                    note=item.note or "",
                    matched=item.matched,
                )
                for i, item in enumerate(items, start=1)
            ],
        )
