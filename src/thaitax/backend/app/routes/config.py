"""Expose the active rate table and deduction rules.

Values are read from the rate repository on every request, so administrative
updates are reflected immediately.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from thaitax.backend.app.localization import get_translator
from thaitax.backend.app.services.calculators import bracket_label
from thaitax.backend.app.services.repository import current_repository
from thaitax.backend.config.rate_config import CLAIMABLE_ALLOWANCE_TYPES
from thaitax.backend.services.request_parser import resolve_locale
from thaitax.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata for the health endpoint."""

    return {
        "version": get_project_version(),
        "allowance_types": [item.value for item in CLAIMABLE_ALLOWANCE_TYPES],
    }


@blueprint.get("")
def get_configuration():
    """Return the bracket table and deduction rules currently in force."""

    repository = current_repository()
    translator = get_translator(resolve_locale(request))
    brackets = repository.tax_rates()

    payload = {
        "fixed_base": repository.fixed_base,
        "brackets": [
            {
                "level": bracket_label(brackets, index, translator),
                "lower_bound_income": bracket.lower_bound,
                "tax_rate": bracket.rate,
            }
            for index, bracket in enumerate(brackets)
        ],
        "deductions": [
            rule.model_dump(mode="json") for rule in repository.deduction_rules()
        ],
        "locale": translator.locale,
    }
    return jsonify(payload), 200
