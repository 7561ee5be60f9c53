"""Application factory for the thaitax backend services."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from warnings import warn

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import BadRequest

from .errors import TaxCalculationError
from .http import ProblemResponse, problem_response
from .localization import get_translator

_LOGGER = logging.getLogger(__name__)


def _parse_allowed_origins(raw: str | None) -> set[str]:
    """Convert an environment variable into a normalised set of origins."""

    if not raw:
        return set()

    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def create_app(repository=None) -> Flask:
    """Create and configure the Flask application instance.

    ``repository`` defaults to the store selected by ``THAITAX_RATES_DB``.
    """

    # Blueprints import the service layer, which imports this package.
    from .routes import register_routes
    from .routes.config import get_configuration_metadata
    from .services.repository import REPOSITORY_EXTENSION, build_repository
    from thaitax.backend.services.request_parser import resolve_locale

    app = Flask(__name__)
    app.extensions[REPOSITORY_EXTENSION] = repository or build_repository()

    allowed_origins = _parse_allowed_origins(os.getenv("THAITAX_ALLOWED_ORIGINS"))
    if not allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=1,
        )

    CORS(
        app,
        resources={
            r"/tax/*": {"origins": sorted(allowed_origins)},
            r"/api/*": {"origins": sorted(allowed_origins)},
        },
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST"],
        allow_headers=["Content-Type"],
    )

    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        payload = {"status": "ok", **get_configuration_metadata()}
        return jsonify(payload)

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        """Return consistent JSON responses for malformed payloads."""

        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(TaxCalculationError)
    def handle_calculation_error(error: TaxCalculationError):
        """Render domain errors in the caller's locale."""

        if error.status >= 500:
            _LOGGER.error("Rate lookup failed: %s", error)
        body = request.get_json(silent=True) if request.is_json else None
        payload = body if isinstance(body, Mapping) else None
        translator = get_translator(resolve_locale(request, payload))
        return ProblemResponse.from_error(error, translator).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Gracefully surface request validation errors to clients."""

        return problem_response(
            "validation_error", status=400, message=str(error)
        ).to_response()

    return app
