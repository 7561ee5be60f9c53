"""Test configuration utilities and shared fixtures."""

import base64
import sys
from collections.abc import Callable
from pathlib import Path

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from thaitax.backend.app import create_app  # noqa: E402
from thaitax.backend.app.services.repository import InMemoryRateRepository  # noqa: E402
from thaitax.backend.config.rate_config import (  # noqa: E402
    RateConfiguration,
    load_rate_configuration,
)

ADMIN_USERNAME = "adminTax"
ADMIN_PASSWORD = "admin!"


def build_seed(**rule_overrides: dict[str, float]) -> RateConfiguration:
    """Return the bundled configuration with selected rule fields replaced.

    Keyword names are allowance tags with dashes replaced by underscores.
    """

    seed = load_rate_configuration()
    deductions = []
    for rule in seed.deductions:
        overrides = rule_overrides.get(rule.allowance_type.value.replace("-", "_"), {})
        deductions.append(rule.model_copy(update=overrides))
    return seed.model_copy(update={"deductions": tuple(deductions)})


@pytest.fixture()
def repository() -> InMemoryRateRepository:
    """Return a fresh in-memory repository seeded from ``rates.yaml``."""

    return InMemoryRateRepository()


@pytest.fixture()
def app(repository: InMemoryRateRepository, monkeypatch: pytest.MonkeyPatch) -> Flask:
    """Return a configured Flask application for integration tests."""

    monkeypatch.setenv("THAITAX_ADMIN_USERNAME", ADMIN_USERNAME)
    monkeypatch.setenv("THAITAX_ADMIN_PASSWORD", ADMIN_PASSWORD)

    application = create_app(repository)
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    """Basic auth headers matching the credentials configured for ``app``."""

    token = base64.b64encode(f"{ADMIN_USERNAME}:{ADMIN_PASSWORD}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture()
def make_client() -> Callable[..., FlaskClient]:
    """Build a client whose repository is seeded with adjusted deduction rules."""

    def factory(**rule_overrides: dict[str, float]) -> FlaskClient:
        application = create_app(InMemoryRateRepository(build_seed(**rule_overrides)))
        application.config.update(TESTING=True)
        return application.test_client()

    return factory
