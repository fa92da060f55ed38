from __future__ import annotations

import dataclasses
from contextlib import contextmanager
from decimal import Decimal

import pytest

from hr_backoffice.budget.category_service import CategoryService
from hr_backoffice.budget.model import AllocationInput, Budget, BudgetAllocation, BudgetCategory
from hr_backoffice.budget.service import BudgetService
from hr_backoffice.core.enums import DeleteOutcome
from hr_backoffice.core.exceptions import BusinessLogicError, ConflictError, NotFoundError, ValidationError


class FakeTx:
    @contextmanager
    def transaction(self):
        yield


class InMemoryCategories:
    def __init__(self):
        self.rows: dict[int, BudgetCategory] = {}
        self.references: dict[int, int] = {}
        self.allocated: dict[int, int] = {}
        self._next_id = 1

    def add(self, name: str, *, is_active: bool = True) -> int:
        category_id = self.create(name=name, description=None)
        if not is_active:
            self.rows[category_id] = dataclasses.replace(self.rows[category_id], is_active=False)
        return category_id

    def create(self, *, name, description):
        category_id = self._next_id
        self._next_id += 1
        self.rows[category_id] = BudgetCategory(category_id, name, description, True)
        return category_id

    def get(self, *, category_id):
        return self.rows.get(int(category_id))

    def get_by_name(self, *, name):
        return next((c for c in self.rows.values() if c.name == name), None)

    def find_many_active_by_ids(self, *, category_ids):
        wanted = set(category_ids)
        return [c for c in self.rows.values() if c.category_id in wanted and c.is_active]

    def update(self, *, category_id, name, description, is_active):
        self.rows[category_id] = BudgetCategory(category_id, name, description, is_active)

    def count_line_item_references(self, *, category_id):
        return self.references.get(category_id, 0)

    def count_allocation_references(self, *, category_id):
        return self.allocated.get(category_id, 0)

    def delete(self, *, category_id):
        return self.rows.pop(category_id, None) is not None


class InMemoryBudgets:
    def __init__(self, categories: InMemoryCategories):
        self._categories = categories
        self.rows: dict[int, dict] = {}
        # budget_id -> [(category_id, amount spent)]
        self.receipt_lines: dict[int, list[tuple[int, Decimal]]] = {}
        self._next_id = 1

    def create(self, *, month, year, total_budget):
        budget_id = self._next_id
        self._next_id += 1
        self.rows[budget_id] = {"month": month, "year": year, "total": total_budget, "allocations": []}
        return budget_id

    def get(self, *, budget_id):
        row = self.rows.get(int(budget_id))
        if row is None:
            return None
        return Budget(
            budget_id=budget_id,
            month=row["month"],
            year=row["year"],
            total_budget=row["total"],
            allocations=tuple(
                BudgetAllocation(a.category_id, self._categories.rows[a.category_id].name, a.amount)
                for a in row["allocations"]
            ),
            receipt_count=self.count_receipts(budget_id=budget_id),
        )

    def get_by_period(self, *, month, year):
        for budget_id, row in self.rows.items():
            if (row["month"], row["year"]) == (month, year):
                return self.get(budget_id=budget_id)
        return None

    def replace_allocations(self, *, budget_id, allocations):
        self.rows[budget_id]["allocations"] = list(allocations)

    def update_total(self, *, budget_id, total_budget):
        self.rows[budget_id]["total"] = total_budget

    def delete(self, *, budget_id):
        return self.rows.pop(budget_id, None) is not None

    def count_receipts(self, *, budget_id):
        return 1 if self.receipt_lines.get(budget_id) else 0

    def categories_used_by_receipts(self, *, budget_id):
        return {category_id for category_id, _ in self.receipt_lines.get(budget_id, [])}

    def total_spent(self, *, budget_id):
        return sum((amount for _, amount in self.receipt_lines.get(budget_id, [])), Decimal("0"))

    def spent_by_category(self, *, budget_id):
        spent: dict[int, Decimal] = {}
        for category_id, amount in self.receipt_lines.get(budget_id, []):
            spent[category_id] = spent.get(category_id, Decimal("0")) + amount
        return spent


@pytest.fixture()
def categories():
    repo = InMemoryCategories()
    repo.add("Office")
    repo.add("Pantry")
    repo.add("Travel")
    return repo


@pytest.fixture()
def budgets(categories):
    return InMemoryBudgets(categories)


@pytest.fixture()
def service(budgets, categories):
    return BudgetService(budgets, categories, FakeTx())


def _alloc(category_id: int, amount: str) -> AllocationInput:
    return AllocationInput(category_id=category_id, amount=Decimal(amount))


def test_create_sums_allocations(service):
    budget = service.create(month=3, year=2024, allocations=[_alloc(1, "500000"), _alloc(2, "250000")])

    assert budget.total_budget == Decimal("750000")
    assert budget.category_ids == {1, 2}


def test_create_rejects_duplicate_period(service):
    service.create(month=3, year=2024, allocations=[_alloc(1, "100")])

    with pytest.raises(ConflictError):
        service.create(month=3, year=2024, allocations=[_alloc(2, "100")])


@pytest.mark.parametrize(
    "month, allocations",
    [
        (13, [("1", "100")]),
        (0, [("1", "100")]),
        (5, []),
        (5, [("1", "0")]),
        (5, [("1", "-10")]),
        (5, [("1", "100"), ("1", "50")]),
    ],
)
def test_create_validation(service, month, allocations):
    with pytest.raises(ValidationError):
        service.create(month=month, year=2024, allocations=[_alloc(int(c), a) for c, a in allocations])


def test_create_rejects_unknown_or_inactive_category(service, categories):
    inactive = categories.add("Old", is_active=False)

    with pytest.raises(NotFoundError) as exc:
        service.create(month=1, year=2024, allocations=[_alloc(1, "100"), _alloc(inactive, "100"), _alloc(42, "1")])
    assert exc.value.details == {"category_ids": [inactive, 42]}


def test_delete_blocked_when_receipts_exist(service, budgets):
    budget = service.create(month=4, year=2024, allocations=[_alloc(1, "100")])
    budgets.receipt_lines[budget.budget_id] = [(1, Decimal("10"))]

    with pytest.raises(BusinessLogicError):
        service.delete(budget.budget_id)
    assert budget.budget_id in budgets.rows


def test_delete_without_receipts_removes_row(service, budgets):
    budget = service.create(month=4, year=2024, allocations=[_alloc(1, "100")])

    service.delete(budget.budget_id)

    assert budget.budget_id not in budgets.rows
    with pytest.raises(NotFoundError):
        service.get(budget.budget_id)


def test_update_cannot_drop_category_used_by_receipts(service, budgets):
    budget = service.create(month=5, year=2024, allocations=[_alloc(1, "100"), _alloc(2, "100"), _alloc(3, "100")])
    budgets.receipt_lines[budget.budget_id] = [(2, Decimal("40"))]

    with pytest.raises(BusinessLogicError) as exc:
        service.update(budget.budget_id, allocations=[_alloc(1, "100"), _alloc(3, "100")])
    assert exc.value.details == {"category_ids": [2]}

    updated = service.update(budget.budget_id, allocations=[_alloc(1, "150"), _alloc(2, "100")])
    assert updated.category_ids == {1, 2}
    assert updated.total_budget == Decimal("250")


def test_summary_reports_spend(service, budgets):
    budget = service.create(month=6, year=2024, allocations=[_alloc(1, "300"), _alloc(2, "700")])
    budgets.receipt_lines[budget.budget_id] = [(1, Decimal("100")), (1, Decimal("50")), (2, Decimal("3.33"))]

    summary = service.summary(budget.budget_id)

    assert summary.total_spent == Decimal("153.33")
    assert summary.remaining == Decimal("846.67")
    # not rounded: 153.33 of 1000
    assert summary.percent_used == Decimal("15.333")
    office = next(c for c in summary.categories if c.category_id == 1)
    assert (office.spent, office.remaining) == (Decimal("150"), Decimal("150"))


def test_category_delete_outcomes(categories):
    service = CategoryService(categories, FakeTx())
    categories.references[1] = 3

    in_use = service.delete(1)
    assert in_use.outcome == DeleteOutcome.DEACTIVATED
    assert not in_use.deleted
    assert categories.rows[1].is_active is False

    unused = service.delete(2)
    assert unused.outcome == DeleteOutcome.DELETED
    assert 2 not in categories.rows


def test_category_allocated_to_a_budget_is_only_deactivated(categories):
    service = CategoryService(categories, FakeTx())
    categories.allocated[3] = 1

    result = service.delete(3)

    assert result.outcome == DeleteOutcome.DEACTIVATED
    assert categories.rows[3].is_active is False


def test_category_names_are_unique(categories):
    service = CategoryService(categories, FakeTx())

    with pytest.raises(ConflictError):
        service.create(name="Office")
    with pytest.raises(ConflictError):
        service.update(2, name="Office")
