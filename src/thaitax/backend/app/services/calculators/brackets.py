"""Bracket resolution against the configured rate table."""

from __future__ import annotations

from collections.abc import Sequence

from thaitax.backend.config.schema import ConfigurationError, TaxBracket


def resolve_bracket_index(brackets: Sequence[TaxBracket], taxable_income: float) -> int:
    """Return the index of the bracket whose rate applies to ``taxable_income``.

    The first bracket whose lower bound is greater than or equal to the income
    marks the bracket the income has not reached yet; the bracket before it
    applies. When no such bracket exists, or it is the first one, the first
    bracket applies. The whole taxable income is taxed at that single rate.
    """

    if not brackets:
        raise ConfigurationError("At least one tax bracket must be defined")

    found = next(
        (
            index
            for index, bracket in enumerate(brackets)
            if taxable_income <= bracket.lower_bound
        ),
        -1,
    )
    return found - 1 if found > 0 else 0
