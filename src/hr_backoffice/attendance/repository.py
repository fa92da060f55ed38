from __future__ import annotations

from datetime import date, time
from typing import Dict, Iterable, Optional, Protocol, Sequence, Set, Tuple

from ..common.pagination import PageRequest
from ..core.enums import AttendanceStatus
from .model import AttendanceQuery, AttendanceRecord


class AttendanceRepository(Protocol):
    def create(
        self,
        *,
        employee_id: int,
        work_date: date,
        clock_in_time: Optional[time],
        status: AttendanceStatus,
        is_manual: bool,
        note: Optional[str] = None,
        entered_by: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def get(self, *, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, *, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def employee_ids_with_record(
        self, *, work_date: date, employee_ids: Optional[Iterable[int]] = None
    ) -> Set[int]:
        raise NotImplementedError

    def list(self, *, query: AttendanceQuery, page: PageRequest) -> Tuple[Sequence[AttendanceRecord], int]:
        raise NotImplementedError

    def list_between(self, *, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        note: Optional[str],
        entered_by: Optional[str],
    ) -> None:
        raise NotImplementedError

    def delete(self, *, attendance_id: int) -> bool:
        raise NotImplementedError

    def count_by_status(
        self, *, start_date: date, end_date: date, employee_id: Optional[int] = None
    ) -> Dict[str, int]:
        raise NotImplementedError
