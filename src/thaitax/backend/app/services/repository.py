"""Rate repositories supplying brackets and deduction rules to the services.

Both implementations are seeded from the YAML rate configuration and are read
on every calculation; nothing is cached between calls, so an administrative
update is visible to the next request.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Callable

from flask import current_app
from pydantic import ValidationError

from thaitax.backend.app.errors import (
    BracketLookupError,
    RuleLookupError,
    UnknownAllowanceTypeError,
)
from thaitax.backend.config.rate_config import (
    AllowanceType,
    ConfigurationError,
    DeductionRule,
    RateConfiguration,
    TaxBracket,
    load_rate_configuration,
)

_LOGGER = logging.getLogger(__name__)

REPOSITORY_EXTENSION = "thaitax.rate_repository"


def _rebuild_rule(rule: DeductionRule, amount: float) -> DeductionRule:
    payload = rule.model_dump()
    payload["max_deduction_amount"] = amount
    try:
        return DeductionRule.model_validate(payload)
    except ValidationError as error:
        raise ConfigurationError(
            f"Rejected update for '{rule.allowance_type.value}': {error}"
        ) from error


class InMemoryRateRepository:
    """Thread-safe in-memory rate store seeded from the rate configuration."""

    def __init__(self, seed: RateConfiguration | None = None) -> None:
        seed = seed or load_rate_configuration()
        self.fixed_base = seed.fixed_base
        self._brackets = tuple(sorted(seed.brackets, key=lambda b: b.lower_bound))
        self._rules = {rule.allowance_type: rule for rule in seed.deductions}
        self._lock = Lock()

    def tax_rates(self) -> list[TaxBracket]:
        return list(self._brackets)

    def deduction_rules(self) -> list[DeductionRule]:
        with self._lock:
            return list(self._rules.values())

    def deductions_by_type(self, allowance_types: Iterable[AllowanceType]) -> list[DeductionRule]:
        wanted = set(allowance_types)
        if not wanted:
            raise RuleLookupError("at least one allowance type must be requested")
        with self._lock:
            return [rule for key, rule in self._rules.items() if key in wanted]

    def update_max_deduction(self, allowance_type: AllowanceType, amount: float) -> DeductionRule:
        with self._lock:
            current = self._rules.get(allowance_type)
            if current is None:
                raise UnknownAllowanceTypeError(allowance_type.value)
            updated = _rebuild_rule(current, amount)
            self._rules[allowance_type] = updated
        return updated


class SQLiteRateRepository:
    """SQLite-backed rate store; tables are created and seeded on first use."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        seed: RateConfiguration | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        seed = seed or load_rate_configuration()
        self.fixed_base = seed.fixed_base
        self._path = str(path)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = Lock()
        self._initialise(seed)

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._path, check_same_thread=False)
        connection.row_factory = sqlite3.Row
        return connection

    def _initialise(self, seed: RateConfiguration) -> None:
        with self._lock, self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS tax_rate (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    lower_bound_income REAL NOT NULL,
                    tax_rate REAL NOT NULL
                )
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS tax_deduction (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    tax_allowance_type TEXT NOT NULL UNIQUE,
                    min_amount REAL NOT NULL,
                    default_amount REAL NOT NULL,
                    max_deduction_amount REAL NOT NULL,
                    admin_override_max REAL NOT NULL,
                    updated_at TEXT
                )
                """
            )

            if connection.execute("SELECT COUNT(*) FROM tax_rate").fetchone()[0] == 0:
                connection.executemany(
                    "INSERT INTO tax_rate (lower_bound_income, tax_rate) VALUES (?, ?)",
                    [(bracket.lower_bound, bracket.rate) for bracket in seed.brackets],
                )
            if connection.execute("SELECT COUNT(*) FROM tax_deduction").fetchone()[0] == 0:
                connection.executemany(
                    "INSERT INTO tax_deduction (tax_allowance_type, min_amount, default_amount,"
                    " max_deduction_amount, admin_override_max) VALUES (?, ?, ?, ?, ?)",
                    [
                        (
                            rule.allowance_type.value,
                            rule.min_amount,
                            rule.default_amount,
                            rule.max_deduction_amount,
                            rule.admin_override_max,
                        )
                        for rule in seed.deductions
                    ],
                )
                _LOGGER.info("Seeded rate database at %s", self._path)

    @staticmethod
    def _decode_rule(row: sqlite3.Row) -> DeductionRule:
        return DeductionRule(
            allowance_type=AllowanceType(row["tax_allowance_type"]),
            min_amount=row["min_amount"],
            default_amount=row["default_amount"],
            max_deduction_amount=row["max_deduction_amount"],
            admin_override_max=row["admin_override_max"],
        )

    def tax_rates(self) -> list[TaxBracket]:
        try:
            with self._connect() as connection:
                rows = connection.execute(
                    "SELECT lower_bound_income, tax_rate FROM tax_rate"
                    " ORDER BY lower_bound_income ASC"
                ).fetchall()
        except sqlite3.Error as error:
            raise BracketLookupError(str(error)) from error
        return [
            TaxBracket(lower_bound=row["lower_bound_income"], rate=row["tax_rate"])
            for row in rows
        ]

    def _select_rules(self, query: str, params: tuple[str, ...] = ()) -> list[DeductionRule]:
        try:
            with self._connect() as connection:
                rows = connection.execute(query, params).fetchall()
        except sqlite3.Error as error:
            raise RuleLookupError(str(error)) from error
        return [self._decode_rule(row) for row in rows]

    def deduction_rules(self) -> list[DeductionRule]:
        return self._select_rules("SELECT * FROM tax_deduction ORDER BY id ASC")

    def deductions_by_type(self, allowance_types: Iterable[AllowanceType]) -> list[DeductionRule]:
        tags = tuple(dict.fromkeys(item.value for item in allowance_types))
        if not tags:
            raise RuleLookupError("at least one allowance type must be requested")
        placeholders = ", ".join("?" for _ in tags)
        return self._select_rules(
            f"SELECT * FROM tax_deduction WHERE tax_allowance_type IN ({placeholders})",
            tags,
        )

    def update_max_deduction(self, allowance_type: AllowanceType, amount: float) -> DeductionRule:
        with self._lock:
            current = self.deductions_by_type([allowance_type])
            if not current:
                raise UnknownAllowanceTypeError(allowance_type.value)
            updated = _rebuild_rule(current[0], amount)
            try:
                with self._connect() as connection:
                    connection.execute(
                        "UPDATE tax_deduction SET max_deduction_amount = ?, updated_at = ?"
                        " WHERE tax_allowance_type = ?",
                        (amount, self._clock().isoformat(), allowance_type.value),
                    )
            except sqlite3.Error as error:
                raise RuleLookupError(str(error)) from error
        return updated


RateRepository = InMemoryRateRepository | SQLiteRateRepository


def current_repository() -> RateRepository:
    """Return the repository bound to the active Flask application."""

    return current_app.extensions[REPOSITORY_EXTENSION]


def build_repository() -> RateRepository:
    """Return the repository selected by ``THAITAX_RATES_DB``."""

    db_path = os.getenv("THAITAX_RATES_DB")
    if db_path and db_path.strip():
        return SQLiteRateRepository(Path(db_path.strip()).expanduser())

    return InMemoryRateRepository()


__all__ = [
    "InMemoryRateRepository",
    "REPOSITORY_EXTENSION",
    "RateRepository",
    "SQLiteRateRepository",
    "build_repository",
    "current_repository",
]
