"""Typed request/response models shared across the calculation services.

Requests arrive as Pydantic models (see :mod:`.api`) and are normalised into
the frozen value objects below before reaching the calculators. Allowance tags
are resolved against the closed :class:`AllowanceType` enumeration at that
point, so the engine never compares raw strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from pydantic import BaseModel, ConfigDict

from thaitax.backend.config.schema import AllowanceType

from .api import (
    AdminSettingRequest,
    AllowanceEntry,
    BatchEntry,
    BatchResponse,
    CalculationRequest,
    CalculationResponse,
    TaxLevelEntry,
    format_validation_error,
)

__all__ = [
    "AdminSettingRequest",
    "AllowanceEntry",
    "AllowanceInput",
    "BatchEntry",
    "BatchResponse",
    "CalculationInput",
    "CalculationRequest",
    "CalculationResponse",
    "CalculationResult",
    "TaxLevel",
    "TaxLevelEntry",
    "format_validation_error",
]


@dataclass(frozen=True)
class AllowanceInput:
    """A single declared allowance resolved to a known type."""

    allowance_type: AllowanceType
    amount: float


class CalculationInput(BaseModel):
    """Validated and normalised input for a single tax calculation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    total_income: float
    withholding_tax: float
    allowances: tuple[AllowanceInput, ...] = ()
    unrecognised_allowances: tuple[str, ...] = ()
    locale: str = "en"

    @property
    def requested_types(self) -> tuple[AllowanceType, ...]:
        """Allowance types whose rules must be read, personal first."""

        requested = [AllowanceType.PERSONAL]
        for allowance in self.allowances:
            if allowance.allowance_type not in requested:
                requested.append(allowance.allowance_type)
        return tuple(requested)


@dataclass(frozen=True)
class TaxLevel:
    label: str
    tax: float


@dataclass(frozen=True)
class CalculationResult:
    """Outcome of a calculation; at most one of due/refund is non-zero."""

    tax_due: float
    tax_refund: float
    taxable_income: float
    total_deductions: float
    bracket_index: int
    levels: Sequence[TaxLevel] = field(default_factory=tuple)
