"""Generate leave years for every active employee, outside the scheduler.

Usage: python scripts/generate_leave_years.py [YEAR]
"""

from __future__ import annotations

import importlib
import sys

from dotenv import load_dotenv

from hr_backoffice.common.logging_setup import configure_logging
from hr_backoffice.config import get_settings_module
from hr_backoffice.container import build_container


def main(argv: list[str]) -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    year = int(argv[0]) if argv else None
    container = build_container(db_config=settings.DB_CONFIG)
    try:
        result = container.leave_year_service.generate_bulk(year)
    finally:
        container.close()

    print(f"Year {result.year}: generated={len(result.succeeded)} failed={len(result.failed)}")
    for failure in result.failed:
        print(f"  employee {failure.employee_id}: {failure.error}")
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
