"""REST endpoints for single and batch tax calculations."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from thaitax.backend.app.services.repository import current_repository
from thaitax.backend.services import (
    build_calculation_response,
    calculate_batch,
    calculate_tax,
    parse_calculation_payload,
    parse_csv_upload,
)

blueprint = Blueprint("calculations", __name__, url_prefix="/tax")


@blueprint.post("/calculations")
def create_calculation() -> tuple[Any, int]:
    """Create a tax calculation using the submitted JSON payload."""

    payload = parse_calculation_payload(request)
    result = calculate_tax(payload, current_repository())

    return build_calculation_response(result)


@blueprint.post("/calculations/upload-csv")
def create_batch_calculation() -> tuple[Any, int]:
    """Compute the tax for every record of an uploaded CSV file."""

    header, rows = parse_csv_upload(request)
    result = calculate_batch(header, rows, current_repository())

    return build_calculation_response(result)
