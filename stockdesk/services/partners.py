"""Vendor and customer records."""

from __future__ import annotations

import logging

from sqlalchemy import func, or_

from stockdesk.extensions import db
from stockdesk.models import Customer, PartyStatus, Vendor
from stockdesk.permissions import SessionContext
from stockdesk.services.common import next_party_code
from stockdesk.store import RecordStore
from stockdesk.utils.parsing import PayloadReader

logger = logging.getLogger(__name__)

vendors: RecordStore[Vendor] = RecordStore(Vendor, label="Vendor", order_by=Vendor.code)
customers: RecordStore[Customer] = RecordStore(Customer, label="Customer", order_by=Customer.code)

CODE_PREFIXES = {Vendor: "V", Customer: "C"}
_REQUIRED_FIELDS = (
    ("name", "Company name"),
    ("contact_person", "Contact person"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("address", "Address"),
)
_OPTIONAL_FIELDS = (
    ("gstin", "GSTIN"),
    ("vat_number", "VAT number"),
)


def search_parties(model, search: str | None = None) -> list:
    query = model.query
    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                func.lower(model.name).like(pattern),
                func.lower(model.contact_person).like(pattern),
                func.lower(model.email).like(pattern),
            )
        )
    return query.order_by(model.code).all()


def partner_stats(vendor_list, customer_list) -> dict[str, int]:
    return {
        "total_vendors": len(vendor_list),
        "active_vendors": sum(1 for vendor in vendor_list if vendor.status == PartyStatus.ACTIVE),
        "total_customers": len(customer_list),
        "active_customers": sum(
            1 for customer in customer_list if customer.status == PartyStatus.ACTIVE
        ),
    }


def _read_party(reader: PayloadReader, model, *, partial: bool) -> dict:
    values: dict = {}
    for field, label in _REQUIRED_FIELDS:
        if partial and not reader.has(field):
            continue
        values[field] = reader.text(field, label, required=True)
    for field, label in _OPTIONAL_FIELDS:
        if partial and not reader.has(field):
            continue
        values[field] = reader.text(field, label)
    if not partial or reader.has("payment_terms"):
        values["payment_terms"] = reader.text("payment_terms", "Payment terms", default="Net 30") or "Net 30"
    if not partial or reader.has("status"):
        values["status"] = reader.choice(
            "status", "Status", PartyStatus.ALL, default=PartyStatus.ACTIVE
        ) or PartyStatus.ACTIVE

    if model is Customer and (not partial or reader.has("credit_limit")):
        values["credit_limit"] = reader.decimal("credit_limit", "Credit limit", default=0)
    if model is Vendor and reader.has("documents"):
        documents = reader.payload.get("documents")
        if not isinstance(documents, list):
            reader.errors.append("Documents must be a list.")
        else:
            values["documents"] = [str(document) for document in documents]
    return values


def store_for(model) -> RecordStore:
    return vendors if model is Vendor else customers


def create_party(model, payload: dict, context: SessionContext):
    reader = PayloadReader(payload)
    values = _read_party(reader, model, partial=False)
    reader.raise_for_errors()

    record = model(code=next_party_code(model, CODE_PREFIXES[model]), order_history=[], **values)
    store_for(model).add(record)
    logger.info("%s %s added by %s", model.__name__, record.code, context.name)
    return record


def update_party(model, record_id, payload: dict, context: SessionContext):
    store = store_for(model)
    record = store.get(record_id)
    reader = PayloadReader(payload)
    values = _read_party(reader, model, partial=True)
    reader.raise_for_errors()
    store.update(record.id, values)
    logger.info("%s %s updated by %s", model.__name__, record.code, context.name)
    return record


def set_party_status(model, record_id, status: str | None, context: SessionContext):
    """Set the status directly; any of the three states may follow any other."""

    reader = PayloadReader({"status": status})
    value = reader.choice("status", "Status", PartyStatus.ALL, required=True)
    reader.raise_for_errors()
    record = store_for(model).update(record_id, {"status": value})
    logger.info("%s %s marked %s by %s", model.__name__, record.code, value, context.name)
    return record


def append_order_history(model, record_id, order_number: str) -> None:
    record = db.session.get(model, record_id) if record_id else None
    if record is None:
        return
    record.order_history = list(record.order_history or []) + [order_number]
