"""Per-bracket breakdown of the tax due for display."""

from __future__ import annotations

from collections.abc import Sequence

from thaitax.backend.app.localization import Translator
from thaitax.backend.app.models import TaxLevel
from thaitax.backend.config.schema import TaxBracket

from .utils import format_amount


def bracket_label(
    brackets: Sequence[TaxBracket], index: int, translator: Translator
) -> str:
    """Return ``"lower-upper"`` for ``brackets[index]``, or an open range for the last."""

    lower = format_amount(brackets[index].lower_bound)
    if index + 1 < len(brackets):
        upper = format_amount(brackets[index + 1].lower_bound - 1)
        return f"{lower}-{upper}"
    return translator.format("levels.open_range", lower=lower)


def tax_level_details(
    brackets: Sequence[TaxBracket],
    resolved_index: int,
    tax_due: float,
    translator: Translator,
) -> list[TaxLevel]:
    """Attribute ``tax_due`` to the resolved bracket and zero to the others.

    Refunds are never attributed to a level.
    """

    return [
        TaxLevel(
            label=bracket_label(brackets, index, translator),
            tax=tax_due if index == resolved_index else 0.0,
        )
        for index in range(len(brackets))
    ]
