"""Net tax computation and payable/refund classification."""

from __future__ import annotations

from thaitax.backend.config.schema import TaxBracket

FIXED_BASE = 150_000.0


def calculate_tax_payable(
    taxable_income: float,
    withholding_tax: float,
    bracket: TaxBracket,
    fixed_base: float = FIXED_BASE,
) -> float:
    """Return the signed net liability; negative values are refunds."""

    rate = bracket.rate / 100
    return (taxable_income - fixed_base) * rate - withholding_tax


def split_refund(amount: float) -> tuple[float, float]:
    """Split a signed liability into ``(tax_due, tax_refund)``."""

    if amount < 0:
        return 0.0, -amount
    return amount, 0.0
