"""Configuration loader for the seeded bracket table and deduction rules."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .schema import (
    CLAIMABLE_ALLOWANCE_TYPES,
    AllowanceType,
    ConfigurationError,
    DeductionRule,
    ImmutableModel,
    RateConfiguration,
    TaxBracket,
)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
RATES_FILE = CONFIG_DIRECTORY / "rates.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


def parse_rate_configuration(raw: dict[str, Any]) -> RateConfiguration:
    """Validate a raw mapping into a :class:`RateConfiguration`."""

    try:
        return RateConfiguration.model_validate(raw)
    except ValidationError as error:
        raise ConfigurationError(f"Rate configuration validation failed: {error}") from error


def load_rate_file(path: Path) -> RateConfiguration:
    """Read and validate the rate configuration stored at ``path``."""

    if not path.exists():
        raise FileNotFoundError(f"Rate configuration missing: {path.name}")

    return parse_rate_configuration(_load_yaml(path))


@lru_cache(maxsize=1)
def load_rate_configuration() -> RateConfiguration:
    """Load and cache the bundled seed rate configuration."""

    return load_rate_file(RATES_FILE)


__all__ = [
    "AllowanceType",
    "CLAIMABLE_ALLOWANCE_TYPES",
    "CONFIG_DIRECTORY",
    "ConfigurationError",
    "DeductionRule",
    "ImmutableModel",
    "RATES_FILE",
    "RateConfiguration",
    "TaxBracket",
    "load_rate_configuration",
    "load_rate_file",
    "parse_rate_configuration",
]
