from datetime import date

import pytest

from hr_backoffice.core.enums import LeaveYearKind
from hr_backoffice.core.exceptions import ValidationError
from hr_backoffice.leave.entitlement import (
    EntitlementPolicyFactory,
    FullYearPolicy,
    ProbationPolicy,
    ProratePolicy,
    compute_entitlement,
    tenure_year,
)

HIRED = date(2022, 4, 10)


def test_tenure_year_starts_at_one():
    assert tenure_year(HIRED, 2022) == 1
    assert tenure_year(HIRED, 2025) == 4


def test_factory_picks_policy_by_tenure():
    factory = EntitlementPolicyFactory()
    assert isinstance(factory.for_year(hire_date=HIRED, year=2022), ProbationPolicy)
    assert isinstance(factory.for_year(hire_date=HIRED, year=2023), FullYearPolicy)
    assert isinstance(factory.for_year(hire_date=HIRED, year=2024), ProratePolicy)
    assert isinstance(factory.for_year(hire_date=HIRED, year=2030), ProratePolicy)


def test_entitlement_by_tenure():
    probation = compute_entitlement(HIRED, 2022)
    assert probation.kind == LeaveYearKind.PROBATION
    assert probation.base_allowance == 0

    full = compute_entitlement(HIRED, 2023)
    assert full.kind == LeaveYearKind.FULL
    assert full.base_allowance == 12

    prorate = compute_entitlement(HIRED, 2024)
    assert prorate.kind == LeaveYearKind.PRORATE
    assert prorate.base_allowance == 12 - 4 + 1


def test_prorate_for_january_and_december_hires():
    assert compute_entitlement(date(2020, 1, 2), 2022).base_allowance == 12
    assert compute_entitlement(date(2020, 12, 1), 2022).base_allowance == 1


def test_year_before_hire_is_rejected():
    with pytest.raises(ValidationError):
        compute_entitlement(HIRED, 2021)
