from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from ..common.money import ZERO, percent_of
from ..common.validators import require_decimal, require_int, require_non_empty
from ..core.exceptions import ValidationError
from .discounts import DiscountStrategyFactory
from .model import LineItemInput, PricedLine, ReceiptTotals


@dataclass(frozen=True)
class TaxDecision:
    tax_percent: Optional[Decimal]
    tax_amount: Optional[Decimal]
    value: Decimal


class ReceiptCalculator:
    """Line, discount and receipt-level tax arithmetic."""

    def __init__(self, discounts: Optional[DiscountStrategyFactory] = None):
        self._discounts = discounts or DiscountStrategyFactory()

    def price_line(self, line: LineItemInput) -> PricedLine:
        item_name = require_non_empty(line.item_name, "item_name")
        unit_price = require_decimal(line.unit_price, f"unit price of '{item_name}'")
        qty = require_int(line.qty, f"qty of '{item_name}'")
        if unit_price <= 0:
            raise ValidationError(f"Price of item '{item_name}' must be greater than 0")
        if qty <= 0:
            raise ValidationError(f"Quantity of item '{item_name}' must be greater than 0")

        discount_value = (
            require_decimal(line.discount_value, f"discount of '{item_name}'")
            if line.discount_value is not None
            else None
        )
        subtotal = unit_price * qty
        strategy = self._discounts.for_line(discount_type=line.discount_type, value=discount_value)
        discount = strategy.amount(subtotal=subtotal, value=discount_value or ZERO)

        return PricedLine(
            label_id=int(line.label_id),
            category_id=int(line.category_id),
            item_name=item_name,
            unit_price=unit_price,
            qty=qty,
            subtotal=subtotal,
            discount_type=line.discount_type,
            discount_value=discount_value,
            discount_amount=discount,
            amount_after_discount=subtotal - discount,
            inventory_item_id=line.inventory_item_id,
            note=line.note,
        )

    @staticmethod
    def check_tax_exclusive(tax_percent: Optional[Decimal], tax_amount: Optional[Decimal]) -> None:
        if tax_percent is not None and tax_amount is not None:
            raise ValidationError("Provide either tax_percent or tax_amount, not both")

    def compute_tax(
        self,
        after_discount: Decimal,
        *,
        tax_percent: Optional[Decimal] = None,
        tax_amount: Optional[Decimal] = None,
    ) -> TaxDecision:
        self.check_tax_exclusive(tax_percent, tax_amount)

        if tax_percent is not None:
            percent = require_decimal(tax_percent, "tax_percent")
            if percent < 0 or percent > 100:
                raise ValidationError("tax_percent must be between 0 and 100")
            value = percent_of(after_discount, percent)
            return TaxDecision(tax_percent=percent or None, tax_amount=value if value > 0 else None, value=value)

        if tax_amount is not None:
            amount = require_decimal(tax_amount, "tax_amount")
            if amount < 0:
                raise ValidationError("tax_amount must not be negative")
            return TaxDecision(tax_percent=None, tax_amount=amount if amount > 0 else None, value=amount)

        return TaxDecision(tax_percent=None, tax_amount=None, value=ZERO)

    def compute_totals(
        self,
        lines: Sequence[LineItemInput],
        *,
        tax_percent: Optional[Decimal] = None,
        tax_amount: Optional[Decimal] = None,
    ) -> Tuple[list[PricedLine], ReceiptTotals]:
        priced = [self.price_line(line) for line in lines]
        total_price = sum((p.subtotal for p in priced), ZERO)
        total_discount = sum((p.discount_amount for p in priced), ZERO)
        totals = self.totals_for(total_price, total_discount, tax_percent=tax_percent, tax_amount=tax_amount)
        return priced, totals

    def totals_for(
        self,
        total_price: Decimal,
        total_discount: Decimal,
        *,
        tax_percent: Optional[Decimal] = None,
        tax_amount: Optional[Decimal] = None,
    ) -> ReceiptTotals:
        tax = self.compute_tax(total_price - total_discount, tax_percent=tax_percent, tax_amount=tax_amount)
        return ReceiptTotals(
            total_price=total_price,
            total_discount=total_discount,
            tax_percent=tax.tax_percent,
            tax_amount=tax.tax_amount,
            total_after_tax=total_price - total_discount + tax.value,
        )
