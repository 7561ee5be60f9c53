"""Pydantic models describing the public API surface."""

from __future__ import annotations

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

__all__ = [
    "AdminSettingRequest",
    "AllowanceEntry",
    "BatchEntry",
    "BatchResponse",
    "CalculationRequest",
    "CalculationResponse",
    "TaxLevelEntry",
    "format_validation_error",
]


class AllowanceEntry(BaseModel):
    """An allowance as declared by the taxpayer; the tag is not yet trusted."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    allowance_type: str = Field(alias="allowanceType")
    amount: float = Field(ge=0, allow_inf_nan=False)

    @field_validator("allowance_type", mode="before")
    @classmethod
    def _normalise_tag(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("allowanceType must be a string")
        return value.strip().lower()


class CalculationRequest(BaseModel):
    """Payload accepted by the calculation endpoint."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    total_income: float = Field(alias="totalIncome", ge=0, allow_inf_nan=False)
    withholding_tax: float = Field(default=0.0, alias="wht", allow_inf_nan=False)
    allowances: list[AllowanceEntry] = Field(default_factory=list)
    locale: str = Field(default="en")

    @field_validator("allowances", mode="before")
    @classmethod
    def _normalise_allowances(cls, value: Any) -> Any:
        if value is None:
            return []
        return value

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        if value is None:
            return "en"
        text = str(value).strip()
        return text or "en"


class AdminSettingRequest(BaseModel):
    """New maximum deduction amount proposed by an administrator."""

    model_config = ConfigDict(extra="forbid")

    amount: float = Field(allow_inf_nan=False)


class TaxLevelEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str
    tax: float


class CalculationResponse(BaseModel):
    """Response payload for a single calculation."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    tax: float = Field(ge=0)
    tax_refund: float = Field(alias="taxRefund", ge=0)
    tax_level: list[TaxLevelEntry] = Field(alias="taxLevel")


class BatchEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    total_income: float = Field(alias="totalIncome")
    tax: float


class BatchResponse(BaseModel):
    """Response payload for a CSV batch upload."""

    model_config = ConfigDict(extra="forbid")

    taxes: list[BatchEntry]


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid calculation payload: {details}"
