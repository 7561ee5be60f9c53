"""Domain errors raised by the calculation services.

Each error carries a machine-readable ``code``, the HTTP status the Flask
error handlers should use and a translation key so messages can be rendered
in the caller's locale. ``str(error)`` always yields the English message.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from thaitax.backend.app.localization import Translator, get_translator


class TaxCalculationError(ValueError):
    """Base class for errors surfaced to API clients."""

    code = "calculation_error"
    status = HTTPStatus.BAD_REQUEST
    message_key = "errors.calculation"
    # 1-based data row when raised while processing a CSV batch.
    row: int | None = None

    def __init__(self, message_key: str | None = None, **params: Any) -> None:
        if message_key is not None:
            self.message_key = message_key
        self.params = params
        super().__init__(self.render())

    def render(self, translator: Translator | None = None) -> str:
        """Return the message for ``translator``'s locale (English by default)."""

        translator = translator or get_translator()
        return translator.format(self.message_key, **self.params)

    def extra(self) -> dict[str, Any]:
        """Additional fields merged into the problem response payload."""

        return {"row": self.row} if self.row is not None else {}


class InvalidWithholdingError(TaxCalculationError):
    """Withholding tax is not positive or exceeds the total income."""

    code = "invalid_withholding"
    message_key = "errors.invalid_withholding"


class BelowMinimumThresholdError(TaxCalculationError):
    """A declared allowance is below the minimum amount of its rule."""

    code = "below_minimum_threshold"
    message_key = "errors.below_minimum_threshold"

    def __init__(self, allowance_type: str) -> None:
        self.allowance_type = allowance_type
        super().__init__(allowance_type=allowance_type)

    def extra(self) -> dict[str, Any]:
        return {**super().extra(), "allowance_type": self.allowance_type}


class AdminBoundsViolationError(TaxCalculationError):
    """An administrative deduction amount falls outside the rule bounds."""

    code = "admin_bounds_violation"

    def __init__(self, bound: str, limit: float) -> None:
        self.bound = bound
        self.limit = limit
        key = (
            "errors.admin_above_maximum"
            if bound == "admin_override_max"
            else "errors.admin_below_minimum"
        )
        super().__init__(key, limit=limit)

    def extra(self) -> dict[str, Any]:
        return {"bound": self.bound, "limit": self.limit}


class UnknownAllowanceTypeError(TaxCalculationError):
    """The admin path referenced an allowance type without a rule."""

    code = "unknown_allowance_type"
    status = HTTPStatus.NOT_FOUND
    message_key = "errors.unknown_allowance_type"

    def __init__(self, allowance_type: str) -> None:
        self.allowance_type = allowance_type
        super().__init__(allowance_type=allowance_type)


class MalformedRecordError(TaxCalculationError):
    """A CSV batch could not be interpreted; the whole batch is rejected."""

    code = "malformed_record"

    def __init__(self, message_key: str, row: int | None = None) -> None:
        self.row = row
        super().__init__(message_key, row=row)


class RuleLookupError(TaxCalculationError):
    """The rate repository could not supply deduction rules."""

    code = "rule_lookup_failure"
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    message_key = "errors.rule_lookup"

    def __init__(self, detail: str) -> None:
        super().__init__(detail=detail)


class BracketLookupError(TaxCalculationError):
    """The rate repository could not supply the bracket table."""

    code = "bracket_lookup_failure"
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    message_key = "errors.bracket_lookup"

    def __init__(self, detail: str) -> None:
        super().__init__(detail=detail)


__all__ = [
    "AdminBoundsViolationError",
    "BelowMinimumThresholdError",
    "BracketLookupError",
    "InvalidWithholdingError",
    "MalformedRecordError",
    "RuleLookupError",
    "TaxCalculationError",
    "UnknownAllowanceTypeError",
]
