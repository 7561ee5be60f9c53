"""Batch tax calculations for uploaded CSV income records.

Rows are computed strictly in order into a local buffer that is only returned
once every row has succeeded; the first malformed or invalid row rejects the
whole batch.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

from thaitax.backend.app.errors import MalformedRecordError, TaxCalculationError
from thaitax.backend.app.models import AllowanceInput, BatchEntry, BatchResponse
from thaitax.backend.config.schema import AllowanceType

from .calculation_service import compute_liability
from .calculators import index_rules, round_currency, split_refund
from .repository import RateRepository

_LOGGER = logging.getLogger(__name__)

EXPECTED_HEADER: tuple[str, ...] = ("totalIncome", "wht", "donation")

_FIELD_ERRORS: tuple[str, ...] = (
    "errors.csv_total_income",
    "errors.csv_wht",
    "errors.csv_donation",
)


def _parse_amount(value: str, message_key: str, row: int) -> float:
    try:
        amount = float(value)
    except ValueError as exc:
        raise MalformedRecordError(message_key, row=row) from exc
    if not math.isfinite(amount):
        raise MalformedRecordError(message_key, row=row)
    return amount


def parse_batch_row(record: Sequence[str], row: int) -> tuple[float, float, float]:
    """Interpret a CSV row as ``(total_income, withholding_tax, donation)``."""

    if len(record) != len(EXPECTED_HEADER):
        raise MalformedRecordError("errors.csv_field_count", row=row)

    total_income, withholding_tax, donation = (
        _parse_amount(value, message_key, row)
        for value, message_key in zip(record, _FIELD_ERRORS)
    )
    return total_income, withholding_tax, donation


def calculate_batch(
    header: Sequence[str],
    rows: Sequence[Sequence[str]],
    repository: RateRepository,
) -> dict[str, Any]:
    """Compute the net tax for every row, or raise for the first bad one."""

    if tuple(header) != EXPECTED_HEADER:
        raise MalformedRecordError("errors.csv_header")

    # One snapshot per batch keeps every row on the same rules.
    rules = index_rules(
        repository.deductions_by_type([AllowanceType.PERSONAL, AllowanceType.DONATION])
    )
    brackets = repository.tax_rates()

    buffer: list[BatchEntry] = []
    for number, record in enumerate(rows, start=1):
        total_income, withholding_tax, donation = parse_batch_row(record, number)
        allowances = (AllowanceInput(AllowanceType.DONATION, donation),)
        try:
            signed_amount, *_ = compute_liability(
                rules,
                brackets,
                repository.fixed_base,
                total_income,
                withholding_tax,
                allowances,
            )
        except TaxCalculationError as error:
            error.row = number
            raise
        tax_due, _ = split_refund(signed_amount)
        buffer.append(BatchEntry(total_income=total_income, tax=round_currency(tax_due)))

    _LOGGER.debug("Computed batch of %d record(s)", len(buffer))
    return BatchResponse(taxes=buffer).model_dump(mode="json", by_alias=True)


__all__ = ["EXPECTED_HEADER", "calculate_batch", "parse_batch_row"]
