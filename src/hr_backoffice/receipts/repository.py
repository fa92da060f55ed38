from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence, Tuple

from ..common.pagination import PageRequest
from .model import Label, PricedLine, Receipt, ReceiptTotals, RollupFilter, RollupRow


class LabelRepository(Protocol):
    def create(self, *, name: str, description: Optional[str], color: Optional[str]) -> int:
        raise NotImplementedError

    def get(self, *, label_id: int) -> Optional[Label]:
        raise NotImplementedError

    def get_by_name(self, *, name: str) -> Optional[Label]:
        raise NotImplementedError

    def list(self, *, is_active: Optional[bool], page: PageRequest) -> Tuple[Sequence[Label], int]:
        raise NotImplementedError

    def list_active(self) -> Sequence[Label]:
        raise NotImplementedError

    def find_many_active_by_ids(self, *, label_ids: Iterable[int]) -> Sequence[Label]:
        raise NotImplementedError

    def update(
        self,
        *,
        label_id: int,
        name: str,
        description: Optional[str],
        color: Optional[str],
        is_active: bool,
    ) -> None:
        raise NotImplementedError

    def count_line_item_references(self, *, label_id: int) -> int:
        raise NotImplementedError

    def delete(self, *, label_id: int) -> bool:
        raise NotImplementedError


class ReceiptRepository(Protocol):
    def create(
        self,
        *,
        budget_id: int,
        receipt_date: date,
        receipt_number: Optional[str],
        attachment_path: Optional[str],
        original_filename: Optional[str],
        totals: ReceiptTotals,
        note: Optional[str],
    ) -> int:
        raise NotImplementedError

    def add_lines(self, *, receipt_id: int, lines: Sequence[PricedLine]) -> None:
        raise NotImplementedError

    def get(self, *, receipt_id: int) -> Optional[Receipt]:
        """Receipt with its line items."""

        raise NotImplementedError

    def get_by_number(self, *, receipt_number: str) -> Optional[Receipt]:
        raise NotImplementedError

    def list(self, *, filters: RollupFilter, page: PageRequest) -> Tuple[Sequence[Receipt], int]:
        raise NotImplementedError

    def update(
        self,
        *,
        receipt_id: int,
        receipt_date: date,
        receipt_number: Optional[str],
        attachment_path: Optional[str],
        original_filename: Optional[str],
        note: Optional[str],
        tax_percent: Optional[Decimal],
        tax_amount: Optional[Decimal],
        total_after_tax: Decimal,
    ) -> None:
        raise NotImplementedError

    def delete_lines(self, *, receipt_id: int) -> int:
        raise NotImplementedError

    def delete(self, *, receipt_id: int) -> bool:
        raise NotImplementedError

    def rollup_by_label(self, *, filters: RollupFilter) -> Sequence[RollupRow]:
        raise NotImplementedError

    def rollup_by_category(self, *, filters: RollupFilter) -> Sequence[RollupRow]:
        raise NotImplementedError
