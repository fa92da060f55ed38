"""Background scheduling for recurring leave-year generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from ..common.datetime_utils import current_year
from ..core.constants import (
    DEFAULT_LEAVE_GENERATION_CRON,
    DEFAULT_SCHEDULER_TIMEZONE,
    LEAVE_GENERATION_JOB_ID,
)
from ..leave.model import BulkGenerationResult

logger = logging.getLogger(__name__)

GenerateForYear = Callable[[int], BulkGenerationResult]


@dataclass(frozen=True)
class JobStatus:
    id: str
    name: str
    next_run_time: Optional[str]
    trigger: str


@dataclass(frozen=True)
class SchedulerStatus:
    is_running: bool
    cron: str
    timezone: str
    jobs: List[JobStatus]


class LeaveGenerationScheduler:
    """Runs bulk leave-year generation for the current year on a cron schedule."""

    def __init__(
        self,
        generate_for_year: GenerateForYear,
        *,
        cron: str = DEFAULT_LEAVE_GENERATION_CRON,
        timezone: str = DEFAULT_SCHEDULER_TIMEZONE,
    ):
        self._generate_for_year = generate_for_year
        self._cron = cron
        self._timezone = timezone
        self._scheduler = BackgroundScheduler(
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 3600},
            timezone=timezone,
        )

    def _run_scheduled(self) -> None:
        year = current_year()
        logger.info("Scheduled leave year generation started: year=%s", year)
        try:
            result = self._generate_for_year(year)
        except Exception:
            logger.exception("Scheduled leave year generation failed: year=%s", year)
            return
        logger.info(
            "Scheduled leave year generation completed: year=%s succeeded=%d failed=%d",
            year,
            len(result.succeeded),
            len(result.failed),
        )
        if result.failed:
            logger.warning("Leave year generation failures: %s", [(f.employee_id, f.error) for f in result.failed])

    def start(self) -> None:
        if self._scheduler.running:
            logger.warning("Leave generation scheduler already running")
            return

        self._scheduler.add_job(
            self._run_scheduled,
            CronTrigger.from_crontab(self._cron, timezone=self._timezone),
            id=LEAVE_GENERATION_JOB_ID,
            name="Generate leave years",
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("Leave generation scheduler started: cron=%s timezone=%s", self._cron, self._timezone)

        for job in self._scheduler.get_jobs():
            logger.info("Scheduled job: %s - Next run: %s", job.name, job.next_run_time)

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=True)
            logger.info("Leave generation scheduler stopped")

    def is_running(self) -> bool:
        return bool(self._scheduler.running)

    def status(self) -> SchedulerStatus:
        jobs = [
            JobStatus(
                id=job.id,
                name=job.name,
                next_run_time=str(job.next_run_time) if getattr(job, "next_run_time", None) else None,
                trigger=str(job.trigger),
            )
            for job in self._scheduler.get_jobs()
        ]
        return SchedulerStatus(is_running=self.is_running(), cron=self._cron, timezone=self._timezone, jobs=jobs)

    def trigger_now(self, year: Optional[int] = None) -> BulkGenerationResult:
        """Run generation immediately, outside the schedule. Errors propagate to the caller."""
        target = int(year) if year is not None else current_year()
        logger.info("Manual leave year generation triggered: year=%s", target)
        return self._generate_for_year(target)
