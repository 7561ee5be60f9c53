"""Unit tests for response formatting helpers."""

from __future__ import annotations

from http import HTTPStatus

from flask import Flask

from thaitax.backend.services.response_builder import build_calculation_response


def test_build_calculation_response_returns_json(app: Flask) -> None:
    """Formatting helper should generate a JSON response tuple."""

    with app.app_context():
        response, status = build_calculation_response({"tax": 4000.0, "taxRefund": 0.0})

    assert status == 200
    assert response.get_json() == {"tax": 4000.0, "taxRefund": 0.0}


def test_build_calculation_response_honours_status(app: Flask) -> None:
    with app.app_context():
        _, status = build_calculation_response({}, status=HTTPStatus.CREATED)

    assert status == 201
