"""Orchestrate request validation, normalisation and tax calculations.

The calculation service reads a fresh rule and bracket snapshot from the rate
repository, runs the calculators in order (deductions, bracket resolution,
liability, levels) and returns the JSON-ready response. Profiling hooks live
here so the calculators stay free of timing concerns.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from contextlib import contextmanager
from time import perf_counter
from typing import Any

from pydantic import ValidationError

from thaitax.backend.app.localization import Translator, get_translator
from thaitax.backend.app.models import (
    AllowanceInput,
    CalculationInput,
    CalculationRequest,
    CalculationResponse,
    CalculationResult,
    format_validation_error,
)
from thaitax.backend.config.schema import (
    AllowanceType,
    DeductionRule,
    TaxBracket,
)

from .calculators import (
    aggregate_deductions,
    calculate_tax_payable,
    index_rules,
    resolve_bracket_index,
    round_currency,
    split_refund,
    tax_level_details,
    validate_request,
)
from .repository import RateRepository

_LOGGER = logging.getLogger(__name__)


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("THAITAX_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def _normalise_payload(request: CalculationRequest) -> CalculationInput:
    allowances: list[AllowanceInput] = []
    unrecognised: list[str] = []

    for entry in request.allowances:
        allowance_type = AllowanceType.from_tag(entry.allowance_type)
        if allowance_type is None:
            unrecognised.append(entry.allowance_type)
            continue
        allowances.append(AllowanceInput(allowance_type=allowance_type, amount=entry.amount))

    if unrecognised:
        _LOGGER.debug("Ignoring unrecognised allowance types: %s", unrecognised)

    return CalculationInput(
        total_income=request.total_income,
        withholding_tax=request.withholding_tax,
        allowances=tuple(allowances),
        unrecognised_allowances=tuple(unrecognised),
        locale=request.locale,
    )


def parse_calculation_request(payload: Mapping[str, Any] | CalculationRequest) -> CalculationInput:
    """Validate ``payload`` and resolve its allowance tags."""

    if isinstance(payload, CalculationRequest):
        request_model = payload
    else:
        if not isinstance(payload, Mapping):
            raise ValueError("Payload must be a mapping")
        try:
            request_model = CalculationRequest.model_validate(payload)
        except ValidationError as exc:
            raise ValueError(format_validation_error(exc)) from exc

    return _normalise_payload(request_model)


def compute_liability(
    rules: Mapping[AllowanceType, DeductionRule],
    brackets: Sequence[TaxBracket],
    fixed_base: float,
    total_income: float,
    withholding_tax: float,
    allowances: Sequence[AllowanceInput],
) -> tuple[float, float, float, int]:
    """Validate and compute ``(signed_amount, taxable_income, deductions, index)``.

    Shared by single calculations and batch rows so both apply identical rules.
    """

    validate_request(rules, total_income, withholding_tax, allowances)

    deductions = aggregate_deductions(rules, allowances)
    taxable_income = total_income - deductions
    index = resolve_bracket_index(brackets, taxable_income)
    signed_amount = calculate_tax_payable(
        taxable_income, withholding_tax, brackets[index], fixed_base
    )
    return signed_amount, taxable_income, deductions, index


def calculate(
    calculation: CalculationInput,
    repository: RateRepository,
    translator: Translator | None = None,
    timings: dict[str, float] | None = None,
) -> CalculationResult:
    """Run the calculators for ``calculation`` against a fresh repository snapshot."""

    translator = translator or get_translator(calculation.locale)

    with _profile_section("rule_lookup", timings):
        rules = index_rules(repository.deductions_by_type(calculation.requested_types))

    with _profile_section("bracket_lookup", timings):
        brackets = repository.tax_rates()

    with _profile_section("compute", timings):
        signed_amount, taxable_income, deductions, index = compute_liability(
            rules,
            brackets,
            repository.fixed_base,
            calculation.total_income,
            calculation.withholding_tax,
            calculation.allowances,
        )
        tax_due, tax_refund = split_refund(signed_amount)

    with _profile_section("levels", timings):
        levels = tax_level_details(brackets, index, round_currency(tax_due), translator)

    return CalculationResult(
        tax_due=round_currency(tax_due),
        tax_refund=round_currency(tax_refund),
        taxable_income=taxable_income,
        total_deductions=deductions,
        bracket_index=index,
        levels=tuple(levels),
    )


def calculate_tax(
    payload: Mapping[str, Any] | CalculationRequest,
    repository: RateRepository,
) -> dict[str, Any]:
    """Compute the tax response for the provided payload."""

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    with _profile_section("normalise_payload", timings):
        calculation = parse_calculation_request(payload)

    result = calculate(calculation, repository, timings=timings)

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "calculate_tax timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    response_model = CalculationResponse.model_validate(
        {
            "tax": result.tax_due,
            "taxRefund": result.tax_refund,
            "taxLevel": [{"level": level.label, "tax": level.tax} for level in result.levels],
        }
    )
    return response_model.model_dump(mode="json", by_alias=True)


__all__ = [
    "calculate",
    "calculate_tax",
    "compute_liability",
    "parse_calculation_request",
]
