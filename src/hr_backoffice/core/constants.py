"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

FULL_YEAR_ALLOWANCE_DAYS = 12
PROBATION_ALLOWANCE_DAYS = 0

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

# Scanner clock-ins after this time are flagged as late in the attendance export.
LATE_AFTER = time(8, 15)

DEFAULT_LEAVE_GENERATION_CRON = "0 0 1 1 *"
DEFAULT_SCHEDULER_TIMEZONE = "Asia/Jakarta"
LEAVE_GENERATION_JOB_ID = "generate_leave_years"
