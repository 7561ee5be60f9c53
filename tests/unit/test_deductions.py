"""Unit tests for request validation and deduction aggregation."""

from __future__ import annotations

import pytest

from thaitax.backend.app.errors import (
    BelowMinimumThresholdError,
    InvalidWithholdingError,
    RuleLookupError,
)
from thaitax.backend.app.models import AllowanceInput
from thaitax.backend.app.services.calculators import (
    aggregate_deductions,
    allowance_contribution,
    index_rules,
    validate_request,
    validate_withholding,
)
from thaitax.backend.config.rate_config import AllowanceType, DeductionRule

PERSONAL = DeductionRule(
    allowance_type=AllowanceType.PERSONAL,
    min_amount=10_000,
    default_amount=60_000,
    max_deduction_amount=60_000,
    admin_override_max=100_000,
)
DONATION = DeductionRule(
    allowance_type=AllowanceType.DONATION,
    min_amount=0,
    max_deduction_amount=100_000,
    admin_override_max=100_000,
)
K_RECEIPT = DeductionRule(
    allowance_type=AllowanceType.K_RECEIPT,
    min_amount=0,
    default_amount=50_000,
    max_deduction_amount=50_000,
    admin_override_max=100_000,
)
RULES = index_rules([PERSONAL, DONATION, K_RECEIPT])


def donation(amount: float) -> AllowanceInput:
    return AllowanceInput(AllowanceType.DONATION, amount)


def test_personal_allowance_is_always_applied() -> None:
    assert aggregate_deductions(RULES, []) == 60_000


def test_allowances_are_capped_at_rule_maximum() -> None:
    allowances = [donation(200_000), AllowanceInput(AllowanceType.K_RECEIPT, 80_000)]

    assert aggregate_deductions(RULES, allowances) == 60_000 + 100_000 + 50_000


def test_repeated_allowance_types_are_each_capped() -> None:
    assert aggregate_deductions(RULES, [donation(30_000), donation(30_000)]) == 120_000


def test_allowance_without_rule_contributes_nothing() -> None:
    rules = index_rules([PERSONAL, DONATION])
    k_receipt = AllowanceInput(AllowanceType.K_RECEIPT, 40_000)

    assert allowance_contribution(rules, k_receipt) == 0
    assert aggregate_deductions(rules, [k_receipt]) == 60_000


def test_missing_personal_rule_is_a_lookup_failure() -> None:
    with pytest.raises(RuleLookupError):
        aggregate_deductions(index_rules([DONATION]), [donation(1_000)])


@pytest.mark.parametrize("amount", [0.0, 1.0, 99_999.0, 100_000.0, 1e9])
def test_contribution_never_exceeds_maximum(amount: float) -> None:
    contribution = allowance_contribution(RULES, donation(amount))

    assert 0 <= contribution <= DONATION.max_deduction_amount
    assert contribution == min(amount, DONATION.max_deduction_amount)


@pytest.mark.parametrize(
    ("total_income", "withholding_tax"),
    [(500_000, 0), (500_000, -1), (500_000, 700_000)],
)
def test_invalid_withholding_is_rejected(total_income: float, withholding_tax: float) -> None:
    with pytest.raises(InvalidWithholdingError) as excinfo:
        validate_withholding(total_income, withholding_tax)

    assert str(excinfo.value) == "invalid withholding tax amount"


def test_withholding_equal_to_income_is_accepted() -> None:
    validate_withholding(500_000, 500_000)


def test_allowance_below_minimum_is_rejected() -> None:
    rules = index_rules([PERSONAL, DONATION.model_copy(update={"min_amount": 1_000})])

    with pytest.raises(BelowMinimumThresholdError) as excinfo:
        validate_request(rules, 500_000, 25_000, [donation(500)])

    assert excinfo.value.allowance_type == "donation"
    assert excinfo.value.extra() == {"allowance_type": "donation"}
    assert "below the minimum threshold" in str(excinfo.value)


def test_withholding_is_checked_before_allowances() -> None:
    rules = index_rules([PERSONAL, DONATION.model_copy(update={"min_amount": 1_000})])

    with pytest.raises(InvalidWithholdingError):
        validate_request(rules, 500_000, 0, [donation(500)])
