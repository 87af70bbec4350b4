"""Helpers shared by the order-style services."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping

from flask import current_app
from sqlalchemy import func

from stockdesk import derived
from stockdesk.exceptions import ConfirmationRequired, TransitionRefused
from stockdesk.extensions import db
from stockdesk.models import Product
from stockdesk.utils.parsing import PayloadReader


def strict_transitions() -> bool:
    return bool(current_app.config.get("STRICT_STATUS_TRANSITIONS"))


def apply_transition(record, target: str, transitions: Mapping[str, set], *, label: str) -> str:
    """Move ``record`` to ``target`` and return the previous status.

    Illegal moves are only refused when ``STRICT_STATUS_TRANSITIONS`` is on;
    otherwise any listed status may be assigned directly.
    """

    current = record.status
    if (
        strict_transitions()
        and target != current
        and target not in transitions.get(current, set())
    ):
        raise TransitionRefused(label, current, target)
    record.status = target
    return current


def require_confirmation(payload: Mapping | None, label: str) -> None:
    reader = PayloadReader(payload)
    if not reader.boolean("confirm", "Confirm", default=False):
        raise ConfirmationRequired(label)


def next_document_number(model, column, prefix: str, *, on: date | None = None) -> str:
    year = (on or date.today()).year
    existing = db.session.query(func.count(model.id)).scalar() or 0
    candidate = derived.sequence_number(prefix, year, existing)
    # Numbers are count based; skip forward past any number already taken.
    while model.query.filter(column == candidate).first() is not None:
        existing += 1
        candidate = derived.sequence_number(prefix, year, existing)
    return candidate


def next_party_code(model, prefix: str) -> str:
    existing = db.session.query(func.count(model.id)).scalar() or 0
    candidate = f"{prefix}{existing + 1:03d}"
    while model.query.filter(model.code == candidate).first() is not None:
        existing += 1
        candidate = f"{prefix}{existing + 1:03d}"
    return candidate


def build_lines(raw_items: Iterable | None, line_model, errors: list[str], *, label: str = "Item") -> list:
    """Turn submitted line dictionaries into ``line_model`` instances.

    A line naming only ``product_id`` picks up the catalog name and, when no
    unit price is given, the catalog price.
    """

    if not isinstance(raw_items, (list, tuple)) or not raw_items:
        errors.append("At least one line item is required.")
        return []

    lines = []
    for index, raw in enumerate(raw_items, start=1):
        reader = PayloadReader(raw)
        product_id = reader.integer("product_id", f"{label} {index} product", minimum=1)
        product = db.session.get(Product, product_id) if product_id else None
        if product_id and product is None:
            reader.errors.append(f"{label} {index}: product {product_id} does not exist.")

        product_name = reader.text(
            "product_name",
            f"{label} {index} product name",
            default=product.name if product else None,
        )
        if product_name is None and product is not None:
            product_name = product.name
        if product_name is None:
            reader.errors.append(f"{label} {index} product name is required.")

        quantity = reader.integer("quantity", f"{label} {index} quantity", required=True)
        unit_price = reader.decimal("unit_price", f"{label} {index} unit price")
        if unit_price is None and product is not None and not reader.has("unit_price"):
            unit_price = derived.money(product.price)
        if unit_price is None:
            reader.errors.append(f"{label} {index} unit price is required.")

        if reader.errors:
            errors.extend(reader.errors)
            continue

        lines.append(
            line_model(
                product_id=product.id if product else None,
                product_name=product_name,
                quantity=quantity,
                unit_price=unit_price,
            )
        )
    return lines


def lines_total(lines) -> Decimal:
    return derived.order_total(line.total for line in lines)
