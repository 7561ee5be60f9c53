"""Integration tests for the single calculation endpoint."""

from http import HTTPStatus
from typing import Callable

from flask.testing import FlaskClient

from thaitax.backend.app import create_app
from thaitax.backend.app.errors import BracketLookupError
from thaitax.backend.app.services.repository import InMemoryRateRepository

ENDPOINT = "/tax/calculations"


def test_calculation_endpoint_returns_tax_levels(client: FlaskClient) -> None:
    response = client.post(
        ENDPOINT,
        json={
            "totalIncome": 500000.0,
            "wht": 25000.0,
            "allowances": [{"allowanceType": "donation", "amount": 0.0}],
        },
    )

    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == {
        "tax": 4000.0,
        "taxRefund": 0.0,
        "taxLevel": [
            {"level": "0-150,000", "tax": 0.0},
            {"level": "150,001-500,000", "tax": 4000.0},
            {"level": "500,001-1,000,000", "tax": 0.0},
            {"level": "1,000,001-2,000,000", "tax": 0.0},
            {"level": "2,000,001 and above", "tax": 0.0},
        ],
    }


def test_calculation_endpoint_reports_refund(client: FlaskClient) -> None:
    response = client.post(
        ENDPOINT,
        json={
            "totalIncome": 500000.0,
            "wht": 25000.0,
            "allowances": [{"allowanceType": "k-receipt", "amount": 100000.0}],
        },
    )

    payload = response.get_json()
    assert payload["tax"] == 0.0
    assert payload["taxRefund"] == 1000.0
    assert all(level["tax"] == 0.0 for level in payload["taxLevel"])


def test_calculation_endpoint_localises_labels(client: FlaskClient) -> None:
    response = client.post(
        ENDPOINT,
        json={"totalIncome": 500000.0, "wht": 25000.0},
        headers={"Accept-Language": "th"},
    )

    assert response.get_json()["taxLevel"][-1]["level"] == "2,000,001 ขึ้นไป"


def test_invalid_withholding_is_rejected(client: FlaskClient) -> None:
    response = client.post(ENDPOINT, json={"totalIncome": 500000.0, "wht": 700000.0})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json() == {
        "error": "invalid_withholding",
        "message": "invalid withholding tax amount",
    }


def test_invalid_withholding_message_is_localised(client: FlaskClient) -> None:
    response = client.post(
        ENDPOINT, json={"totalIncome": 500000.0, "wht": 0, "locale": "th"}
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["message"] == "จำนวนภาษีหัก ณ ที่จ่ายไม่ถูกต้อง"


def test_body_locale_takes_precedence_for_errors(client: FlaskClient) -> None:
    response = client.post(
        ENDPOINT,
        json={"totalIncome": 500000.0, "wht": 700000.0, "locale": "th"},
        headers={"Accept-Language": "en"},
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json() == {
        "error": "invalid_withholding",
        "message": "จำนวนภาษีหัก ณ ที่จ่ายไม่ถูกต้อง",
    }


def test_declared_personal_allowance_is_validated(client: FlaskClient) -> None:
    response = client.post(
        ENDPOINT,
        json={
            "totalIncome": 500000.0,
            "wht": 25000.0,
            "allowances": [{"allowanceType": "personal", "amount": 5000.0}],
        },
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json() == {
        "error": "below_minimum_threshold",
        "message": "amount for personal allowance is below the minimum threshold",
        "allowance_type": "personal",
    }


def test_allowance_below_minimum_is_rejected(make_client: Callable[..., FlaskClient]) -> None:
    client = make_client(donation={"min_amount": 1000.0})

    response = client.post(
        ENDPOINT,
        json={
            "totalIncome": 500000.0,
            "wht": 25000.0,
            "allowances": [{"allowanceType": "donation", "amount": 500.0}],
        },
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "below_minimum_threshold"
    assert payload["allowance_type"] == "donation"


def test_negative_income_is_a_validation_error(client: FlaskClient) -> None:
    response = client.post(ENDPOINT, json={"totalIncome": -1, "wht": 0})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert "totalIncome: value cannot be negative" in payload["message"]


def test_non_finite_income_is_a_validation_error(client: FlaskClient) -> None:
    response = client.post(
        ENDPOINT,
        data='{"totalIncome": Infinity, "wht": 1}',
        content_type="application/json",
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert payload["message"].startswith("Invalid calculation payload: totalIncome")


def test_non_json_body_is_a_bad_request(client: FlaskClient) -> None:
    response = client.post(ENDPOINT, data="not json", content_type="text/plain")

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json() == {
        "error": "bad_request",
        "message": "Request body must be valid JSON",
    }


def test_repository_failures_surface_as_server_errors() -> None:
    class BrokenRepository(InMemoryRateRepository):
        def tax_rates(self):
            raise BracketLookupError("no such table: tax_rate")

    app = create_app(BrokenRepository())
    app.config.update(TESTING=True)

    response = app.test_client().post(ENDPOINT, json={"totalIncome": 500000.0, "wht": 25000.0})

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.get_json()["error"] == "bracket_lookup_failure"
