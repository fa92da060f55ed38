"""Using the service layer directly, without Flask.

Controllers stay thin; every rule lives in the services wired by the container.
"""

import importlib
from datetime import date
from decimal import Decimal

from hr_backoffice.config import get_settings_module
from hr_backoffice.container import build_container
from hr_backoffice.receipts.model import LineItemInput
from hr_backoffice.receipts.pricing import ReceiptCalculator


def main():
    # Pure arithmetic, no database needed.
    _, totals = ReceiptCalculator().compute_totals(
        [LineItemInput(label_id=1, category_id=1, item_name="Paper A4", unit_price=Decimal("45000"), qty=2)],
        tax_percent=Decimal("11"),
    )
    print(totals)

    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    try:
        print(container.attendance_service.list_missing(date.today()))
        print(container.item_service.low_stock())
    finally:
        container.close()


if __name__ == "__main__":
    main()
