"""Helpers for reading submitted JSON payloads.

Each ``_parse_*`` helper returns a ``(value, error)`` pair. :class:`PayloadReader`
collects the errors so a handler can report every problem with one response.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from flask import request

from stockdesk.exceptions import ValidationError

_MISSING = object()
_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def _clean_text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_int(value, *, field_label: str, minimum: int | None = 0) -> tuple[int | None, str | None]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None, None
    if isinstance(value, bool):
        return None, f"Enter a whole number for {field_label}."
    try:
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError
            number = int(value)
        else:
            number = int(str(value).strip())
    except (TypeError, ValueError):
        return None, f"Enter a whole number for {field_label}."
    if minimum is not None and number < minimum:
        return None, f"{field_label.capitalize()} cannot be less than {minimum}."
    return number, None


def _parse_decimal(value, *, field_label: str) -> tuple[Decimal | None, str | None]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None, None
    if isinstance(value, bool):
        return None, f"Enter a valid amount for {field_label}."
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None, f"Enter a valid amount for {field_label}."
    if not number.is_finite():
        return None, f"Enter a valid amount for {field_label}."
    if number < 0:
        return None, f"{field_label.capitalize()} cannot be negative."
    return number.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP), None


def _parse_date(value, *, field_label: str) -> tuple[date | None, str | None]:
    if value is None:
        return None, None
    if isinstance(value, date):
        return value, None
    text = str(value).strip()
    if not text:
        return None, None
    try:
        parsed = datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None, f"Enter {field_label} in YYYY-MM-DD format."
    return parsed, None


def _parse_bool(value) -> tuple[bool | None, str | None]:
    if isinstance(value, bool):
        return value, None
    if isinstance(value, (int, float)):
        return bool(value), None
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True, None
    if text in _FALSE_STRINGS:
        return False, None
    return None, f"{value!r} is not a yes/no value."


class PayloadReader:
    """Read typed fields from a request payload, collecting every error."""

    def __init__(self, payload: Mapping[str, Any] | None):
        self.payload = payload if isinstance(payload, Mapping) else {}
        self.errors: list[str] = []

    def has(self, field: str) -> bool:
        return field in self.payload

    def _raw(self, field: str):
        return self.payload.get(field, _MISSING)

    def _require(self, value, label: str):
        if value is None:
            self.errors.append(f"{label} is required.")

    def text(self, field: str, label: str, *, required: bool = False, default=None):
        raw = self._raw(field)
        value = default if raw is _MISSING else _clean_text(raw)
        if required:
            self._require(value, label)
        return value

    def integer(
        self,
        field: str,
        label: str,
        *,
        required: bool = False,
        default=None,
        minimum: int | None = 0,
    ):
        raw = self._raw(field)
        if raw is _MISSING:
            value = default
        else:
            value, error = _parse_int(raw, field_label=label.lower(), minimum=minimum)
            if error:
                self.errors.append(error)
                return None
        if required:
            self._require(value, label)
        return value

    def decimal(self, field: str, label: str, *, required: bool = False, default=None):
        raw = self._raw(field)
        if raw is _MISSING:
            value = default
        else:
            value, error = _parse_decimal(raw, field_label=label.lower())
            if error:
                self.errors.append(error)
                return None
        if required:
            self._require(value, label)
        return value

    def date(self, field: str, label: str, *, required: bool = False, default=None):
        raw = self._raw(field)
        if raw is _MISSING:
            value = default
        else:
            value, error = _parse_date(raw, field_label=f"the {label.lower()}")
            if error:
                self.errors.append(error)
                return None
        if required:
            self._require(value, label)
        return value

    def boolean(self, field: str, label: str, *, default=None):
        raw = self._raw(field)
        if raw is _MISSING:
            return default
        value, error = _parse_bool(raw)
        if error:
            self.errors.append(f"{label}: {error}")
            return None
        return value

    def choice(self, field: str, label: str, choices: Iterable[str], *, required: bool = False, default=None):
        allowed = tuple(choices)
        value = self.text(field, label, required=required, default=default)
        if value is not None and value not in allowed:
            self.errors.append(f"{label} must be one of: {', '.join(allowed)}.")
            return None
        return value

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)


def request_payload(*, include_args: bool = False) -> dict:
    """Return the JSON body (or form data) of the active request as a dict."""

    payload: dict = {}
    if include_args:
        payload.update(request.args.to_dict())
    body = request.get_json(silent=True)
    if isinstance(body, Mapping):
        payload.update(body)
    elif request.form:
        payload.update(request.form.to_dict())
    return payload
