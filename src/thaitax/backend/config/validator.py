"""Utilities for validating the rate configuration and surfacing issues."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from .rate_config import (
    CLAIMABLE_ALLOWANCE_TYPES,
    RATES_FILE,
    ConfigurationError,
    DeductionRule,
    RateConfiguration,
    TaxBracket,
    load_rate_file,
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_brackets(brackets: Sequence[TaxBracket]) -> list[str]:
    errors: list[str] = []

    previous_rate: float | None = None
    for index, bracket in enumerate(brackets):
        if previous_rate is not None and bracket.rate < previous_rate:
            errors.append(
                _format_scope(
                    f"brackets[{index}]",
                    f"rate {bracket.rate} is lower than the preceding bracket rate "
                    f"{previous_rate}",
                )
            )
        previous_rate = bracket.rate

    return errors


def _validate_rule(rule: DeductionRule) -> list[str]:
    scope = f"deductions.{rule.allowance_type.value}"
    errors: list[str] = []

    if rule.max_deduction_amount < rule.min_amount:
        errors.append(
            _format_scope(
                scope,
                (
                    f"maximum deduction {rule.max_deduction_amount} is below the "
                    f"minimum amount {rule.min_amount}"
                ),
            )
        )

    return errors


def validate_rate_configuration(config: RateConfiguration) -> list[str]:
    """Return human-readable issues detected for ``config``."""

    errors: list[str] = []
    errors.extend(_validate_brackets(config.brackets))

    configured = {rule.allowance_type for rule in config.deductions}
    for allowance_type in CLAIMABLE_ALLOWANCE_TYPES:
        if allowance_type not in configured:
            errors.append(
                _format_scope(
                    "deductions",
                    f"no rule configured for claimable allowance '{allowance_type.value}'",
                )
            )

    for rule in config.deductions:
        errors.extend(_validate_rule(rule))

    return errors


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate the rate configuration and report issues to contributors."
    )
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="Configuration files to validate (defaults to the bundled rates.yaml)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    paths = args.paths or [RATES_FILE]

    exit_code = 0

    for path in paths:
        try:
            config = load_rate_file(path)
        except (FileNotFoundError, ConfigurationError) as error:
            print(f"[{path.name}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_rate_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{path.name}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{path.name}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
