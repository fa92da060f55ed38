from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence


@dataclass(frozen=True)
class BudgetCategory:
    category_id: int
    name: str
    description: Optional[str]
    is_active: bool


@dataclass(frozen=True)
class BudgetAllocation:
    category_id: int
    category_name: str
    amount: Decimal


@dataclass(frozen=True)
class AllocationInput:
    category_id: int
    amount: Decimal


@dataclass(frozen=True)
class Budget:
    budget_id: int
    month: int
    year: int
    total_budget: Decimal
    allocations: Sequence[BudgetAllocation] = ()
    receipt_count: int = 0

    @property
    def category_ids(self) -> set[int]:
        return {a.category_id for a in self.allocations}


@dataclass(frozen=True)
class CategorySpend:
    category_id: int
    category_name: str
    allocation: Decimal
    spent: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class BudgetSummary:
    budget: Budget
    total_spent: Decimal
    remaining: Decimal
    percent_used: Decimal
    categories: Sequence[CategorySpend] = ()
