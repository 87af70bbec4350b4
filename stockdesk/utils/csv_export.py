"""CSV download helpers for report endpoints."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from flask import Response, stream_with_context

CENTS = Decimal("0.01")


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value.quantize(CENTS), "f")
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def report_filename(prefix: str, *, on: date | None = None) -> str:
    return f"{prefix}-{(on or date.today()).isoformat()}.csv"


def export_rows_to_csv(
    rows: Iterable[Mapping[str, object]],
    columns: Sequence[tuple[str, str]],
    filename: str,
) -> Response:
    """Stream ``rows`` as CSV with one header row taken from ``columns``."""

    def generate():
        buffer = io.StringIO()
        writer = csv.writer(buffer)

        def flush() -> str:
            text = buffer.getvalue()
            buffer.seek(0)
            buffer.truncate(0)
            return text

        writer.writerow([header for _, header in columns])
        yield flush()
        for row in rows:
            writer.writerow([_cell(row.get(field)) for field, _ in columns])
            yield flush()

    response = Response(stream_with_context(generate()), mimetype="text/csv")
    response.headers["Content-Disposition"] = f"attachment; filename={filename}"
    return response
