"""Helpers for normalising incoming calculation and admin requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest

from thaitax.backend.app.errors import MalformedRecordError
from thaitax.backend.app.localization import normalise_locale
from thaitax.backend.app.services.csv_reader import read_csv_records

UPLOAD_FIELDS: tuple[str, ...] = ("taxFile", "file")


def resolve_locale(req: Request, payload: Mapping[str, Any] | None = None) -> str:
    """Return the locale hinted by ``payload``, the query string or headers."""

    locale = payload.get("locale") if payload is not None else None
    if isinstance(locale, str) and locale.strip():
        return normalise_locale(locale)

    locale_param = req.args.get("locale")
    if locale_param:
        return normalise_locale(locale_param)

    accept_language = req.headers.get("Accept-Language")
    if accept_language:
        primary = accept_language.split(",")[0].split(";")[0].strip()
        if primary:
            return normalise_locale(primary)

    return normalise_locale(None)


def _read_json_object(req: Request) -> dict[str, Any]:
    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    return dict(data)


def parse_calculation_payload(req: Request) -> dict[str, Any]:
    """Extract a calculation payload from ``req`` with its locale resolved."""

    payload = _read_json_object(req)
    payload["locale"] = resolve_locale(req, payload)
    return payload


def parse_admin_payload(req: Request) -> dict[str, Any]:
    """Extract the administrative setting payload from ``req``."""

    return _read_json_object(req)


def parse_csv_upload(req: Request) -> tuple[list[str], list[list[str]]]:
    """Read the uploaded CSV file into ``(header, rows)``."""

    upload = next(
        (req.files[field] for field in UPLOAD_FIELDS if field in req.files),
        None,
    )
    if upload is None:
        raise MalformedRecordError("errors.csv_missing_file")

    return read_csv_records(upload.stream)


__all__ = [
    "parse_admin_payload",
    "parse_calculation_payload",
    "parse_csv_upload",
    "resolve_locale",
]
