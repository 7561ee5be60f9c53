"""Request validation and deduction aggregation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from thaitax.backend.app.errors import (
    BelowMinimumThresholdError,
    InvalidWithholdingError,
    RuleLookupError,
)
from thaitax.backend.app.models import AllowanceInput
from thaitax.backend.config.schema import AllowanceType, DeductionRule


def index_rules(rules: Iterable[DeductionRule]) -> dict[AllowanceType, DeductionRule]:
    """Key ``rules`` by allowance type."""

    return {rule.allowance_type: rule for rule in rules}


def validate_withholding(total_income: float, withholding_tax: float) -> None:
    """Require ``0 < withholding_tax <= total_income``."""

    if withholding_tax <= 0 or withholding_tax > total_income:
        raise InvalidWithholdingError()


def validate_allowances(
    rules: Mapping[AllowanceType, DeductionRule],
    allowances: Sequence[AllowanceInput],
) -> None:
    """Reject the first allowance declared below its rule's minimum amount."""

    for allowance in allowances:
        rule = rules.get(allowance.allowance_type)
        if rule is not None and allowance.amount < rule.min_amount:
            raise BelowMinimumThresholdError(allowance.allowance_type.value)


def validate_request(
    rules: Mapping[AllowanceType, DeductionRule],
    total_income: float,
    withholding_tax: float,
    allowances: Sequence[AllowanceInput],
) -> None:
    """Check request-level preconditions; withholding is never clamped."""

    validate_withholding(total_income, withholding_tax)
    validate_allowances(rules, allowances)


def allowance_contribution(
    rules: Mapping[AllowanceType, DeductionRule], allowance: AllowanceInput
) -> float:
    """Return the deductible part of ``allowance``.

    Allowances without a configured rule contribute nothing.
    """

    rule = rules.get(allowance.allowance_type)
    if rule is None:
        return 0.0
    return min(allowance.amount, rule.max_deduction_amount)


def aggregate_deductions(
    rules: Mapping[AllowanceType, DeductionRule],
    allowances: Sequence[AllowanceInput],
) -> float:
    """Sum the implicit personal allowance and each capped declared allowance."""

    personal = rules.get(AllowanceType.PERSONAL)
    if personal is None:
        raise RuleLookupError("personal deduction rule is not configured")

    total = personal.max_deduction_amount
    for allowance in allowances:
        total += allowance_contribution(rules, allowance)
    return total


__all__ = [
    "aggregate_deductions",
    "allowance_contribution",
    "index_rules",
    "validate_allowances",
    "validate_request",
    "validate_withholding",
]
