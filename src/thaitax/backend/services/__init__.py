"""Service-layer helpers for the thaitax backend."""

from thaitax.backend.app.services.admin_service import update_deduction
from thaitax.backend.app.services.batch_service import calculate_batch
from thaitax.backend.app.services.calculation_service import calculate_tax

from .request_parser import parse_admin_payload, parse_calculation_payload, parse_csv_upload
from .response_builder import build_calculation_response

__all__ = [
    "build_calculation_response",
    "calculate_batch",
    "calculate_tax",
    "parse_admin_payload",
    "parse_calculation_payload",
    "parse_csv_upload",
    "update_deduction",
]
