"""Utility helpers for calculator modules."""

from __future__ import annotations


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals."""

    rounded = round(value, 2)
    # Avoid surfacing ``-0.0`` in responses.
    return rounded if rounded != 0 else 0.0


def format_amount(value: float) -> str:
    """Return ``value`` with thousands separators, e.g. ``150,001``."""

    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"
