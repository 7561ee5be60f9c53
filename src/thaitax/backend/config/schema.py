"""Pydantic models describing the rate table and deduction rule configuration."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class AllowanceType(str, Enum):
    """Closed set of allowance types understood by the deduction rules."""

    PERSONAL = "personal"
    DONATION = "donation"
    K_RECEIPT = "k-receipt"

    @classmethod
    def from_tag(cls, tag: str | None) -> AllowanceType | None:
        """Return the member matching ``tag`` or ``None`` when it is unknown."""

        if tag is None:
            return None
        try:
            return cls(tag)
        except ValueError:
            return None


# Optional allowance types; the personal rule applies to every calculation.
CLAIMABLE_ALLOWANCE_TYPES: tuple[AllowanceType, ...] = (
    AllowanceType.DONATION,
    AllowanceType.K_RECEIPT,
)


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class TaxBracket(ImmutableModel):
    """A bracket threshold and the marginal rate applied from it upwards."""

    lower_bound: float = Field(alias="lower_bound_income")
    rate: float = Field(alias="tax_rate")

    @model_validator(mode="after")
    def _validate_values(self) -> TaxBracket:
        if self.lower_bound < 0:
            raise ConfigurationError("Bracket lower bounds must be non-negative")
        if not 0 <= self.rate <= 100:
            raise ConfigurationError("Bracket rates must be percentages between 0 and 100")
        return self


class DeductionRule(ImmutableModel):
    """Administrative bounds governing a single allowance type."""

    allowance_type: AllowanceType
    min_amount: float = 0.0
    default_amount: float = 0.0
    max_deduction_amount: float
    admin_override_max: float

    @model_validator(mode="after")
    def _validate_bounds(self) -> Self:
        amounts = {
            "min_amount": self.min_amount,
            "default_amount": self.default_amount,
            "max_deduction_amount": self.max_deduction_amount,
            "admin_override_max": self.admin_override_max,
        }
        for name, value in amounts.items():
            if value < 0:
                raise ConfigurationError(
                    f"Deduction rule '{self.allowance_type.value}': {name} must be non-negative"
                )
        if not self.min_amount <= self.default_amount <= self.admin_override_max:
            raise ConfigurationError(
                f"Deduction rule '{self.allowance_type.value}': default amount must lie "
                "between the minimum and the admin override maximum"
            )
        if self.max_deduction_amount > self.admin_override_max:
            raise ConfigurationError(
                f"Deduction rule '{self.allowance_type.value}': maximum deduction cannot "
                "exceed the admin override maximum"
            )
        return self


class RateConfiguration(ImmutableModel):
    """Seed configuration for the bracket table and deduction rules."""

    fixed_base: float = 150_000.0
    brackets: Sequence[TaxBracket]
    deductions: Sequence[DeductionRule]

    @field_validator("deductions", mode="before")
    @classmethod
    def _expand_deduction_mapping(cls, value: Any) -> Any:
        # YAML keeps rules keyed by allowance type for readability.
        if isinstance(value, Mapping):
            return [
                {"allowance_type": key, **(entry or {})}
                for key, entry in value.items()
            ]
        return value

    @model_validator(mode="after")
    def _validate_configuration(self) -> RateConfiguration:
        if self.fixed_base < 0:
            raise ConfigurationError("The fixed base must be non-negative")
        self._validate_bracket_sequence(self.brackets)

        seen: set[AllowanceType] = set()
        for rule in self.deductions:
            if rule.allowance_type in seen:
                raise ConfigurationError(
                    f"Duplicate deduction rule for '{rule.allowance_type.value}'"
                )
            seen.add(rule.allowance_type)
        if AllowanceType.PERSONAL not in seen:
            raise ConfigurationError("A 'personal' deduction rule must be configured")
        return self

    @staticmethod
    def _validate_bracket_sequence(brackets: Sequence[TaxBracket]) -> None:
        if not brackets:
            raise ConfigurationError("At least one tax bracket must be defined")
        if brackets[0].lower_bound != 0:
            raise ConfigurationError("The first tax bracket must start at zero income")
        previous: float | None = None
        for bracket in brackets:
            if previous is not None and bracket.lower_bound <= previous:
                raise ConfigurationError("Tax brackets must be in ascending order")
            previous = bracket.lower_bound


__all__ = [
    "AllowanceType",
    "CLAIMABLE_ALLOWANCE_TYPES",
    "ConfigurationError",
    "DeductionRule",
    "ImmutableModel",
    "RateConfiguration",
    "TaxBracket",
    "ValidationError",
]
