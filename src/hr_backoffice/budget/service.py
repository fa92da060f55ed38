from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.money import HUNDRED, ZERO
from ..common.pagination import Page, PageRequest
from ..common.validators import require_decimal, require_int, require_month
from ..core.exceptions import BusinessLogicError, ConflictError, NotFoundError, ValidationError
from ..database.transaction import TransactionManager
from .model import AllocationInput, Budget, BudgetSummary, CategorySpend
from .repository import BudgetRepository, CategoryRepository

logger = logging.getLogger(__name__)


class BudgetService:
    def __init__(self, budgets: BudgetRepository, categories: CategoryRepository, tx: TransactionManager):
        self._budgets = budgets
        self._categories = categories
        self._tx = tx

    def _validate_allocations(self, allocations: Sequence[AllocationInput]) -> list[AllocationInput]:
        if not allocations:
            raise ValidationError("A budget needs at least one category allocation")

        cleaned: list[AllocationInput] = []
        seen: set[int] = set()
        for index, allocation in enumerate(allocations, start=1):
            category_id = require_int(allocation.category_id, f"allocations[{index}].category_id")
            amount = require_decimal(allocation.amount, f"allocations[{index}].amount")
            if amount <= 0:
                raise ValidationError(f"Allocation {index}: amount must be greater than 0")
            if category_id in seen:
                raise ValidationError(f"Allocation {index}: category {category_id} is allocated twice")
            seen.add(category_id)
            cleaned.append(AllocationInput(category_id=category_id, amount=amount))

        active = {c.category_id for c in self._categories.find_many_active_by_ids(category_ids=seen)}
        missing = sorted(seen - active)
        if missing:
            raise NotFoundError(
                "Categories not found or inactive: " + ", ".join(str(i) for i in missing),
                details={"category_ids": missing},
            )
        return cleaned

    def create(self, *, month: int, year: int, allocations: Sequence[AllocationInput]) -> Budget:
        month = require_month(month)
        year = require_int(year, "year")
        logger.info("Creating budget: %02d/%s", month, year)

        if self._budgets.get_by_period(month=month, year=year):
            logger.warning("Budget already exists: %02d/%s", month, year)
            raise ConflictError(f"Budget for {month:02d}/{year} already exists")

        cleaned = self._validate_allocations(allocations)
        total = sum((a.amount for a in cleaned), ZERO)

        with self._tx.transaction():
            budget_id = self._budgets.create(month=month, year=year, total_budget=total)
            self._budgets.replace_allocations(budget_id=budget_id, allocations=cleaned)
            budget = self._budgets.get(budget_id=budget_id)

        logger.info("Budget created: id=%s total=%s", budget_id, total)
        return budget

    def update(self, budget_id: int, *, allocations: Sequence[AllocationInput]) -> Budget:
        logger.info("Updating budget allocations: id=%s", budget_id)
        current = self.get(budget_id)
        cleaned = self._validate_allocations(allocations)

        with self._tx.transaction():
            if self._budgets.count_receipts(budget_id=current.budget_id) > 0:
                removed = current.category_ids - {a.category_id for a in cleaned}
                in_use = sorted(removed & self._budgets.categories_used_by_receipts(budget_id=current.budget_id))
                if in_use:
                    raise BusinessLogicError(
                        "Categories already used by receipts cannot be removed; deactivate them instead",
                        details={"category_ids": in_use},
                    )

            total = sum((a.amount for a in cleaned), ZERO)
            self._budgets.replace_allocations(budget_id=current.budget_id, allocations=cleaned)
            self._budgets.update_total(budget_id=current.budget_id, total_budget=total)
            budget = self._budgets.get(budget_id=current.budget_id)

        logger.info("Budget updated: id=%s total=%s", current.budget_id, total)
        return budget

    def delete(self, budget_id: int) -> Budget:
        logger.info("Deleting budget: id=%s", budget_id)
        with self._tx.transaction():
            budget = self.get(budget_id)
            receipts = self._budgets.count_receipts(budget_id=budget.budget_id)
            if receipts > 0:
                raise BusinessLogicError(f"Budget cannot be deleted: it already has {receipts} receipt(s)")
            self._budgets.delete(budget_id=budget.budget_id)
        logger.info("Budget deleted: id=%s", budget.budget_id)
        return budget

    def get(self, budget_id: int) -> Budget:
        budget = self._budgets.get(budget_id=int(budget_id))
        if not budget:
            raise NotFoundError(f"Budget {budget_id} not found")
        return budget

    def get_by_period(self, month: int, year: int) -> Budget:
        budget = self._budgets.get_by_period(month=require_month(month), year=int(year))
        if not budget:
            raise NotFoundError(f"No budget for {int(month):02d}/{year}")
        return budget

    def list(self, year: Optional[int] = None, page: Optional[PageRequest] = None) -> Page[Budget]:
        page = page or PageRequest()
        items, total = self._budgets.list(year=year, page=page)
        return Page.of(items, total, page)

    def summary(self, budget_id: int) -> BudgetSummary:
        budget = self.get(budget_id)
        total_spent = self._budgets.total_spent(budget_id=budget.budget_id)
        spent_by_category = self._budgets.spent_by_category(budget_id=budget.budget_id)

        percent_used = ZERO
        if budget.total_budget > 0:
            percent_used = total_spent / budget.total_budget * HUNDRED

        categories = tuple(
            CategorySpend(
                category_id=a.category_id,
                category_name=a.category_name,
                allocation=a.amount,
                spent=spent_by_category.get(a.category_id, ZERO),
                remaining=a.amount - spent_by_category.get(a.category_id, ZERO),
            )
            for a in budget.allocations
        )
        return BudgetSummary(
            budget=budget,
            total_spent=total_spent,
            remaining=budget.total_budget - total_spent,
            percent_used=percent_used,
            categories=categories,
        )
