"""Administrative updates to deduction rule maximums."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from thaitax.backend.app.errors import AdminBoundsViolationError, UnknownAllowanceTypeError
from thaitax.backend.app.models import AdminSettingRequest, format_validation_error
from thaitax.backend.config.schema import AllowanceType, DeductionRule

from .repository import RateRepository

_LOGGER = logging.getLogger(__name__)

_RESPONSE_KEYS: dict[AllowanceType, str] = {
    AllowanceType.PERSONAL: "personalDeduction",
    AllowanceType.DONATION: "donation",
    AllowanceType.K_RECEIPT: "kReceipt",
}


def validate_admin_amount(rule: DeductionRule, amount: float) -> None:
    """Require ``rule.min_amount <= amount <= rule.admin_override_max``."""

    if amount > rule.admin_override_max:
        raise AdminBoundsViolationError("admin_override_max", rule.admin_override_max)
    if amount < rule.min_amount:
        raise AdminBoundsViolationError("min_amount", rule.min_amount)


def update_deduction(
    allowance_tag: str,
    payload: Mapping[str, Any],
    repository: RateRepository,
) -> dict[str, float]:
    """Validate and persist a new maximum deduction for ``allowance_tag``."""

    allowance_type = AllowanceType.from_tag(allowance_tag.strip().lower())
    if allowance_type is None:
        raise UnknownAllowanceTypeError(allowance_tag)

    try:
        setting = AdminSettingRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc)) from exc

    rules = repository.deductions_by_type([allowance_type])
    if not rules:
        raise UnknownAllowanceTypeError(allowance_type.value)

    validate_admin_amount(rules[0], setting.amount)
    updated = repository.update_max_deduction(allowance_type, setting.amount)

    _LOGGER.info(
        "Updated %s maximum deduction from %.2f to %.2f",
        allowance_type.value,
        rules[0].max_deduction_amount,
        updated.max_deduction_amount,
    )
    return {_RESPONSE_KEYS[allowance_type]: updated.max_deduction_amount}


__all__ = ["update_deduction", "validate_admin_amount"]
