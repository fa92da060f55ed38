from __future__ import annotations

import pytest

from hr_backoffice.common.datetime_utils import current_year
from hr_backoffice.core.constants import LEAVE_GENERATION_JOB_ID
from hr_backoffice.leave.model import BulkGenerationResult, GenerationFailure
from hr_backoffice.scheduler.jobs import LeaveGenerationScheduler


class RecordingGenerator:
    def __init__(self, error: Exception = None):
        self.years = []
        self._error = error

    def __call__(self, year: int) -> BulkGenerationResult:
        self.years.append(year)
        if self._error:
            raise self._error
        result = BulkGenerationResult(year=year)
        result.succeeded.append(1)
        result.failed.append(GenerationFailure(employee_id=2, error="Employee 2 is not active"))
        return result


def test_trigger_now_uses_given_year():
    generator = RecordingGenerator()
    scheduler = LeaveGenerationScheduler(generator, cron="0 0 1 1 *", timezone="UTC")

    result = scheduler.trigger_now(2025)

    assert generator.years == [2025]
    assert result.succeeded == [1]


def test_trigger_now_defaults_to_current_year():
    generator = RecordingGenerator()

    LeaveGenerationScheduler(generator, timezone="UTC").trigger_now()

    assert generator.years == [current_year()]


def test_trigger_now_propagates_errors():
    scheduler = LeaveGenerationScheduler(RecordingGenerator(RuntimeError("db down")), timezone="UTC")

    with pytest.raises(RuntimeError):
        scheduler.trigger_now(2025)


def test_scheduled_run_swallows_errors():
    generator = RecordingGenerator(RuntimeError("db down"))
    scheduler = LeaveGenerationScheduler(generator, timezone="UTC")

    scheduler._run_scheduled()

    assert generator.years == [current_year()]


def test_status_before_start():
    scheduler = LeaveGenerationScheduler(RecordingGenerator(), cron="30 2 1 1 *", timezone="UTC")

    status = scheduler.status()

    assert status.is_running is False
    assert status.cron == "30 2 1 1 *"
    assert status.jobs == []


def test_start_registers_single_job():
    scheduler = LeaveGenerationScheduler(RecordingGenerator(), timezone="UTC")
    scheduler.start()
    try:
        scheduler.start()
        status = scheduler.status()
        assert status.is_running
        assert [job.id for job in status.jobs] == [LEAVE_GENERATION_JOB_ID]
        assert status.jobs[0].next_run_time is not None
    finally:
        scheduler.shutdown()
    assert not scheduler.is_running()
