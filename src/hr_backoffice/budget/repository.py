from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Optional, Protocol, Sequence, Set, Tuple

from ..common.pagination import PageRequest
from .model import AllocationInput, Budget, BudgetCategory


class CategoryRepository(Protocol):
    def create(self, *, name: str, description: Optional[str]) -> int:
        raise NotImplementedError

    def get(self, *, category_id: int) -> Optional[BudgetCategory]:
        raise NotImplementedError

    def get_by_name(self, *, name: str) -> Optional[BudgetCategory]:
        raise NotImplementedError

    def list(self, *, is_active: Optional[bool], page: PageRequest) -> Tuple[Sequence[BudgetCategory], int]:
        raise NotImplementedError

    def list_active(self) -> Sequence[BudgetCategory]:
        raise NotImplementedError

    def find_many_active_by_ids(self, *, category_ids: Iterable[int]) -> Sequence[BudgetCategory]:
        raise NotImplementedError

    def update(self, *, category_id: int, name: str, description: Optional[str], is_active: bool) -> None:
        raise NotImplementedError

    def count_line_item_references(self, *, category_id: int) -> int:
        raise NotImplementedError

    def count_allocation_references(self, *, category_id: int) -> int:
        raise NotImplementedError

    def delete(self, *, category_id: int) -> bool:
        raise NotImplementedError


class BudgetRepository(Protocol):
    def create(self, *, month: int, year: int, total_budget: Decimal) -> int:
        raise NotImplementedError

    def get(self, *, budget_id: int) -> Optional[Budget]:
        """Budget with its allocations and receipt count."""

        raise NotImplementedError

    def get_by_period(self, *, month: int, year: int) -> Optional[Budget]:
        raise NotImplementedError

    def list(self, *, year: Optional[int], page: PageRequest) -> Tuple[Sequence[Budget], int]:
        raise NotImplementedError

    def replace_allocations(self, *, budget_id: int, allocations: Sequence[AllocationInput]) -> None:
        raise NotImplementedError

    def update_total(self, *, budget_id: int, total_budget: Decimal) -> None:
        raise NotImplementedError

    def delete(self, *, budget_id: int) -> bool:
        raise NotImplementedError

    def count_receipts(self, *, budget_id: int) -> int:
        raise NotImplementedError

    def categories_used_by_receipts(self, *, budget_id: int) -> Set[int]:
        raise NotImplementedError

    def total_spent(self, *, budget_id: int) -> Decimal:
        raise NotImplementedError

    def spent_by_category(self, *, budget_id: int) -> Dict[int, Decimal]:
        raise NotImplementedError
