"""Core tax arithmetic: deductions, bracket resolution, liability and levels."""

from .brackets import resolve_bracket_index
from .deductions import (
    aggregate_deductions,
    allowance_contribution,
    index_rules,
    validate_allowances,
    validate_request,
    validate_withholding,
)
from .levels import bracket_label, tax_level_details
from .payable import FIXED_BASE, calculate_tax_payable, split_refund
from .utils import format_amount, round_currency

__all__ = [
    "FIXED_BASE",
    "aggregate_deductions",
    "allowance_contribution",
    "bracket_label",
    "calculate_tax_payable",
    "format_amount",
    "index_rules",
    "resolve_bracket_index",
    "round_currency",
    "split_refund",
    "tax_level_details",
    "validate_allowances",
    "validate_request",
    "validate_withholding",
]
