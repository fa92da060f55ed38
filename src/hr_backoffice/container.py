from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .budget.category_service import CategoryService
from .budget.mysql_budget_repository import MySQLBudgetRepository
from .budget.mysql_category_repository import MySQLCategoryRepository
from .budget.service import BudgetService
from .core.constants import DEFAULT_LEAVE_GENERATION_CRON, DEFAULT_SCHEDULER_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.service import EmployeeService
from .inventory.mysql_item_repository import MySQLItemRepository
from .inventory.mysql_movement_repository import MySQLDisbursementRepository, MySQLPurchaseRepository
from .inventory.service import DisbursementService, ItemService, PurchaseService
from .leave.entitlement import EntitlementPolicyFactory
from .leave.mysql_leave_entry_repository import MySQLLeaveEntryRepository
from .leave.mysql_leave_year_repository import MySQLLeaveYearRepository
from .leave.service import LeaveEntryService, LeaveYearService
from .receipts.label_service import LabelService
from .receipts.mysql_label_repository import MySQLLabelRepository
from .receipts.mysql_receipt_repository import MySQLReceiptRepository
from .receipts.pricing import ReceiptCalculator
from .receipts.service import ReceiptService
from .scheduler.jobs import LeaveGenerationScheduler


@dataclass(frozen=True)
class Container:
    employee_service: EmployeeService
    leave_year_service: LeaveYearService
    leave_entry_service: LeaveEntryService
    attendance_service: AttendanceService
    category_service: CategoryService
    budget_service: BudgetService
    label_service: LabelService
    receipt_service: ReceiptService
    item_service: ItemService
    purchase_service: PurchaseService
    disbursement_service: DisbursementService
    scheduler: LeaveGenerationScheduler
    conn: Optional[DatabaseConnection] = None

    def close(self) -> None:
        self.scheduler.shutdown()
        if self.conn is not None:
            self.conn.close()


def build_container(
    *,
    db_config: dict,
    scheduler_cron: str = DEFAULT_LEAVE_GENERATION_CRON,
    scheduler_timezone: str = DEFAULT_SCHEDULER_TIMEZONE,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    employees_repo = MySQLEmployeeRepository(conn)
    leave_years_repo = MySQLLeaveYearRepository(conn)
    leave_entries_repo = MySQLLeaveEntryRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    categories_repo = MySQLCategoryRepository(conn)
    budgets_repo = MySQLBudgetRepository(conn)
    labels_repo = MySQLLabelRepository(conn)
    receipts_repo = MySQLReceiptRepository(conn)
    items_repo = MySQLItemRepository(conn)
    purchases_repo = MySQLPurchaseRepository(conn)
    disbursements_repo = MySQLDisbursementRepository(conn)

    leave_year_service = LeaveYearService(
        leave_years_repo,
        leave_entries_repo,
        employees_repo,
        conn,
        policy_factory=EntitlementPolicyFactory(),
    )

    return Container(
        employee_service=EmployeeService(employees_repo),
        leave_year_service=leave_year_service,
        leave_entry_service=LeaveEntryService(
            leave_entries_repo, leave_years_repo, leave_year_service, employees_repo, conn
        ),
        attendance_service=AttendanceService(attendance_repo, employees_repo),
        category_service=CategoryService(categories_repo, conn),
        budget_service=BudgetService(budgets_repo, categories_repo, conn),
        label_service=LabelService(labels_repo, conn),
        receipt_service=ReceiptService(
            receipts_repo, budgets_repo, labels_repo, conn, calculator=ReceiptCalculator()
        ),
        item_service=ItemService(items_repo, conn),
        purchase_service=PurchaseService(purchases_repo, items_repo, conn),
        disbursement_service=DisbursementService(disbursements_repo, items_repo, conn),
        scheduler=LeaveGenerationScheduler(
            leave_year_service.generate_bulk,
            cron=scheduler_cron,
            timezone=scheduler_timezone,
        ),
        conn=conn,
    )
