"""Read uploaded CSV files into header and data rows."""

from __future__ import annotations

import csv
from io import StringIO
from typing import IO

from thaitax.backend.app.errors import MalformedRecordError

_BOM = "\ufeff"


def read_csv_records(stream: IO[bytes] | IO[str]) -> tuple[list[str], list[list[str]]]:
    """Return ``(header, rows)`` parsed from ``stream``.

    A leading byte-order mark is stripped from the header. Blank lines are
    skipped; an input without a header row raises :class:`MalformedRecordError`.
    """

    raw = stream.read()
    text = raw.decode("utf-8-sig") if isinstance(raw, bytes) else raw.removeprefix(_BOM)

    records = [record for record in csv.reader(StringIO(text)) if record]
    if not records:
        raise MalformedRecordError("errors.csv_empty")

    header, *rows = records
    header[0] = header[0].removeprefix(_BOM)
    return header, rows


__all__ = ["read_csv_records"]
