from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..common.money import ZERO, percent_of
from ..core.enums import DiscountType
from ..core.exceptions import ValidationError


class DiscountStrategy(ABC):
    """Strategy Pattern: how a line discount turns into an amount."""

    @abstractmethod
    def amount(self, *, subtotal: Decimal, value: Decimal) -> Decimal:
        raise NotImplementedError


class NoDiscount(DiscountStrategy):
    def amount(self, *, subtotal: Decimal, value: Decimal) -> Decimal:
        return ZERO


class FixedAmountDiscount(DiscountStrategy):
    """Flat amount off, never more than the subtotal."""

    def amount(self, *, subtotal: Decimal, value: Decimal) -> Decimal:
        if value < 0:
            raise ValidationError("Fixed discount must not be negative")
        return min(value, subtotal)


class PercentDiscount(DiscountStrategy):
    def amount(self, *, subtotal: Decimal, value: Decimal) -> Decimal:
        if value < 0 or value > 100:
            raise ValidationError("Percent discount must be between 0 and 100")
        return percent_of(subtotal, value)


@dataclass
class DiscountStrategyFactory:
    """Factory Pattern: pick the discount strategy for a line."""

    def for_line(self, *, discount_type: Optional[DiscountType], value: Optional[Decimal]) -> DiscountStrategy:
        if not discount_type or not value:
            return NoDiscount()
        if discount_type == DiscountType.FIXED_AMOUNT:
            return FixedAmountDiscount()
        if discount_type == DiscountType.PERCENT:
            return PercentDiscount()
        return NoDiscount()
