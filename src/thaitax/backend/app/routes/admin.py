"""Administrative endpoints for adjusting deduction maximums."""

from __future__ import annotations

import hmac
import os
from functools import wraps
from http import HTTPStatus
from typing import Any, Callable

from flask import Blueprint, request

from thaitax.backend.app.http import problem_response
from thaitax.backend.app.localization import get_translator
from thaitax.backend.app.services.repository import current_repository
from thaitax.backend.services import (
    build_calculation_response,
    parse_admin_payload,
    update_deduction,
)
from thaitax.backend.services.request_parser import resolve_locale

blueprint = Blueprint("admin", __name__, url_prefix="/admin")


def _credentials_match(username: str | None, password: str | None) -> bool:
    expected_username = os.getenv("THAITAX_ADMIN_USERNAME")
    expected_password = os.getenv("THAITAX_ADMIN_PASSWORD")
    if not expected_username or not expected_password:
        return False
    return hmac.compare_digest(username or "", expected_username) and hmac.compare_digest(
        password or "", expected_password
    )


def require_admin(view: Callable[..., Any]) -> Callable[..., Any]:
    """Reject requests lacking the configured HTTP basic credentials."""

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        auth = request.authorization
        if auth is None or not _credentials_match(auth.username, auth.password):
            translator = get_translator(resolve_locale(request))
            response, status = problem_response(
                "unauthorized",
                status=HTTPStatus.UNAUTHORIZED,
                message=translator("errors.unauthorized"),
            ).to_response()
            response.headers["WWW-Authenticate"] = 'Basic realm="thaitax-admin"'
            return response, status
        return view(*args, **kwargs)

    return wrapper


@blueprint.post("/deductions/<string:allowance_type>")
@require_admin
def update_deduction_setting(allowance_type: str) -> tuple[Any, int]:
    """Set a new maximum deduction for ``allowance_type``."""

    payload = parse_admin_payload(request)
    result = update_deduction(allowance_type, payload, current_repository())

    return build_calculation_response(result)
