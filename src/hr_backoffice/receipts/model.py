from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import DiscountType


@dataclass(frozen=True)
class Label:
    label_id: int
    name: str
    description: Optional[str]
    color: Optional[str]
    is_active: bool


@dataclass(frozen=True)
class LineItemInput:
    label_id: int
    category_id: int
    item_name: str
    unit_price: Decimal
    qty: int
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None
    inventory_item_id: Optional[int] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class PricedLine:
    """A validated line with its derived amounts, ready to persist."""

    label_id: int
    category_id: int
    item_name: str
    unit_price: Decimal
    qty: int
    subtotal: Decimal
    discount_type: Optional[DiscountType]
    discount_value: Optional[Decimal]
    discount_amount: Decimal
    amount_after_discount: Decimal
    inventory_item_id: Optional[int] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class ReceiptTotals:
    total_price: Decimal
    total_discount: Decimal
    tax_percent: Optional[Decimal]
    tax_amount: Optional[Decimal]
    total_after_tax: Decimal


@dataclass(frozen=True)
class ReceiptLineItem:
    line_id: int
    receipt_id: int
    label_id: int
    category_id: int
    item_name: str
    unit_price: Decimal
    qty: int
    subtotal: Decimal
    discount_type: Optional[DiscountType]
    discount_value: Optional[Decimal]
    discount_amount: Decimal
    amount_after_discount: Decimal
    inventory_item_id: Optional[int] = None
    note: Optional[str] = None
    label_name: Optional[str] = None
    category_name: Optional[str] = None


@dataclass(frozen=True)
class Receipt:
    receipt_id: int
    budget_id: int
    receipt_date: date
    receipt_number: Optional[str]
    attachment_path: Optional[str]
    original_filename: Optional[str]
    total_price: Decimal
    total_discount: Decimal
    tax_percent: Optional[Decimal]
    tax_amount: Optional[Decimal]
    total_after_tax: Decimal
    note: Optional[str] = None
    lines: Sequence[ReceiptLineItem] = ()
    line_count: int = 0


@dataclass(frozen=True)
class ReceiptInput:
    budget_id: int
    receipt_date: date
    lines: Sequence[LineItemInput]
    receipt_number: Optional[str] = None
    attachment_path: Optional[str] = None
    original_filename: Optional[str] = None
    tax_percent: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class ReceiptUpdate:
    """Metadata and tax only; ``None`` leaves a field unchanged."""

    receipt_date: Optional[date] = None
    receipt_number: Optional[str] = None
    attachment_path: Optional[str] = None
    original_filename: Optional[str] = None
    tax_percent: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class RollupFilter:
    """Either one budget, or a year with an optional month."""

    budget_id: Optional[int] = None
    year: Optional[int] = None
    month: Optional[int] = None


@dataclass(frozen=True)
class RollupRow:
    key_id: int
    name: Optional[str]
    total_spent: Decimal
    total_qty: int
    line_count: int
