from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from ..core.constants import FULL_YEAR_ALLOWANCE_DAYS, PROBATION_ALLOWANCE_DAYS
from ..core.enums import LeaveYearKind
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Entitlement:
    kind: LeaveYearKind
    base_allowance: int


class EntitlementPolicy(ABC):
    """Strategy Pattern: how a tenure year turns into a base allowance."""

    @abstractmethod
    def decide(self, *, hire_date: date, year: int) -> Entitlement:
        raise NotImplementedError


class ProbationPolicy(EntitlementPolicy):
    """First employment year earns nothing."""

    def decide(self, *, hire_date: date, year: int) -> Entitlement:
        return Entitlement(kind=LeaveYearKind.PROBATION, base_allowance=PROBATION_ALLOWANCE_DAYS)


class FullYearPolicy(EntitlementPolicy):
    def decide(self, *, hire_date: date, year: int) -> Entitlement:
        return Entitlement(kind=LeaveYearKind.FULL, base_allowance=FULL_YEAR_ALLOWANCE_DAYS)


class ProratePolicy(EntitlementPolicy):
    """Months left in the hire-anniversary year, hire month included."""

    def decide(self, *, hire_date: date, year: int) -> Entitlement:
        return Entitlement(
            kind=LeaveYearKind.PRORATE,
            base_allowance=FULL_YEAR_ALLOWANCE_DAYS - hire_date.month + 1,
        )


def tenure_year(hire_date: date, year: int) -> int:
    """1 for the hire year, 2 for the year after, and so on."""
    return year - hire_date.year + 1


@dataclass
class EntitlementPolicyFactory:
    """Factory Pattern: choose the entitlement policy for a tenure year."""

    def for_year(self, *, hire_date: date, year: int) -> EntitlementPolicy:
        tenure = tenure_year(hire_date, year)
        if tenure < 1:
            raise ValidationError(f"Year {year} is before the hire year {hire_date.year}")
        if tenure == 1:
            return ProbationPolicy()
        if tenure == 2:
            return FullYearPolicy()
        return ProratePolicy()


def compute_entitlement(hire_date: date, year: int) -> Entitlement:
    policy = EntitlementPolicyFactory().for_year(hire_date=hire_date, year=year)
    return policy.decide(hire_date=hire_date, year=year)
