from __future__ import annotations

import logging
import time
from datetime import date

from flask import current_app
from sqlalchemy import func, or_

from stockdesk.activity import record_activity
from stockdesk.exceptions import ConflictError
from stockdesk.extensions import db
from stockdesk.models import (
    ActivityEvent,
    GoodsReceipt,
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderStatus,
    Vendor,
)
from stockdesk.permissions import SessionContext
from stockdesk.services.common import (
    apply_transition,
    build_lines,
    lines_total,
    next_document_number,
)
from stockdesk.services.partners import append_order_history
from stockdesk.services.stock_control import receive_into_stock
from stockdesk.store import RecordStore
from stockdesk.utils.parsing import PayloadReader

logger = logging.getLogger(__name__)

purchase_orders: RecordStore[PurchaseOrder] = RecordStore(PurchaseOrder, label="Purchase order")


def list_purchase_orders(search: str | None = None) -> list[PurchaseOrder]:
    query = PurchaseOrder.query
    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                func.lower(PurchaseOrder.po_number).like(pattern),
                func.lower(PurchaseOrder.vendor_name).like(pattern),
            )
        )
    return query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc()).all()


def purchase_order_stats(orders) -> dict[str, int]:
    return {
        "total_pos": len(orders),
        "pending_approval": sum(1 for po in orders if po.status == PurchaseOrderStatus.PENDING),
        "approved": sum(1 for po in orders if po.status == PurchaseOrderStatus.APPROVED),
        "received": sum(1 for po in orders if po.status == PurchaseOrderStatus.RECEIVED),
    }


def _resolve_vendor(reader: PayloadReader, *, required: bool):
    vendor_id = reader.integer("vendor_id", "Vendor", minimum=1)
    vendor = db.session.get(Vendor, vendor_id) if vendor_id else None
    if vendor_id and vendor is None:
        reader.errors.append(f"Vendor {vendor_id} does not exist.")
    vendor_name = reader.text(
        "vendor_name", "Vendor name", default=vendor.name if vendor else None
    ) or (vendor.name if vendor else None)
    if required and vendor_name is None:
        reader.errors.append("Vendor is required.")
    return vendor, vendor_name


def create_purchase_order(payload: dict, context: SessionContext) -> PurchaseOrder:
    reader = PayloadReader(payload)
    vendor, vendor_name = _resolve_vendor(reader, required=True)
    order_date = reader.date("order_date", "Order date", default=date.today())
    expected_delivery = reader.date("expected_delivery", "Expected delivery date")
    status = reader.choice(
        "status", "Status", PurchaseOrderStatus.ALL, default=PurchaseOrderStatus.DRAFT
    )
    lines = build_lines(payload.get("items") if isinstance(payload, dict) else None, PurchaseOrderLine, reader.errors)
    reader.raise_for_errors()

    po = PurchaseOrder(
        po_number=reader.text("po_number", "PO number")
        or next_document_number(PurchaseOrder, PurchaseOrder.po_number, "PO", on=order_date),
        vendor_id=vendor.id if vendor else None,
        vendor_name=vendor_name,
        status=status or PurchaseOrderStatus.DRAFT,
        order_date=order_date or date.today(),
        expected_delivery=expected_delivery,
        items=lines,
        total_amount=lines_total(lines),
    )
    append_order_history(Vendor, po.vendor_id, po.po_number)
    record_activity(
        ActivityEvent.ORDER,
        f"Purchase order {po.po_number} created for {vendor_name}",
        user_name=context.name,
    )
    return purchase_orders.add(po)


def update_purchase_order(po_id, payload: dict, context: SessionContext) -> PurchaseOrder:
    """Replace the editable fields of a purchase order.

    Fields left out of ``payload`` keep their value; a submitted ``items``
    list replaces every line and the total is recomputed from it.
    """

    po = purchase_orders.get(po_id)
    reader = PayloadReader(payload)
    patch: dict = {}

    if reader.has("vendor_id") or reader.has("vendor_name"):
        vendor, vendor_name = _resolve_vendor(reader, required=True)
        patch["vendor_id"] = vendor.id if vendor else None
        patch["vendor_name"] = vendor_name
    if reader.has("order_date"):
        patch["order_date"] = reader.date("order_date", "Order date", required=True)
    if reader.has("expected_delivery"):
        patch["expected_delivery"] = reader.date("expected_delivery", "Expected delivery date")
    status = None
    if reader.has("status"):
        status = reader.choice("status", "Status", PurchaseOrderStatus.ALL, required=True)
    lines = None
    if reader.has("items"):
        lines = build_lines(payload.get("items"), PurchaseOrderLine, reader.errors)
    reader.raise_for_errors()

    if status is not None:
        apply_transition(po, status, PurchaseOrderStatus.TRANSITIONS, label="Purchase order")
    if lines is not None:
        patch["items"] = lines
        patch["total_amount"] = lines_total(lines)

    purchase_orders.update(po.id, patch, commit=False)
    record_activity(
        ActivityEvent.ORDER,
        f"Purchase order {po.po_number} updated",
        user_name=context.name,
    )
    db.session.commit()
    return po


def _transition(po_id, target: str, context: SessionContext, verb: str) -> PurchaseOrder:
    po = purchase_orders.get(po_id)
    previous = apply_transition(po, target, PurchaseOrderStatus.TRANSITIONS, label="Purchase order")
    record_activity(
        ActivityEvent.ORDER,
        f"Purchase order {po.po_number} {verb}",
        user_name=context.name,
    )
    db.session.commit()
    logger.info("Purchase order %s %s -> %s by %s", po.po_number, previous, target, context.name)
    return po


def submit_purchase_order(po_id, context: SessionContext) -> PurchaseOrder:
    return _transition(po_id, PurchaseOrderStatus.PENDING, context, "submitted for approval")


def approve_purchase_order(po_id, context: SessionContext) -> PurchaseOrder:
    """Mark a purchase order approved; nothing besides the status changes."""

    return _transition(po_id, PurchaseOrderStatus.APPROVED, context, "approved")


def cancel_purchase_order(po_id, context: SessionContext) -> PurchaseOrder:
    return _transition(po_id, PurchaseOrderStatus.CANCELLED, context, "cancelled")


def default_receipt_lines(po: PurchaseOrder) -> list[dict]:
    return [
        {
            "product_id": line.product_id,
            "product_name": line.product_name,
            "quantity": line.quantity,
            "received_quantity": line.quantity,
            "is_received": True,
        }
        for line in po.items
    ]


def _read_receipt_lines(raw_lines, reader: PayloadReader) -> list[dict]:
    if not isinstance(raw_lines, (list, tuple)):
        reader.errors.append("Receipt lines must be a list.")
        return []

    lines = []
    for index, raw in enumerate(raw_lines, start=1):
        line_reader = PayloadReader(raw)
        product_name = line_reader.text("product_name", f"Line {index} product name", required=True)
        quantity = line_reader.integer("quantity", f"Line {index} ordered quantity", default=0)
        received = line_reader.integer(
            "received_quantity", f"Line {index} received quantity", default=quantity
        )
        lines.append(
            {
                "product_id": line_reader.integer("product_id", f"Line {index} product", minimum=1),
                "product_name": product_name,
                "quantity": quantity,
                "received_quantity": received,
                "is_received": line_reader.boolean(
                    "is_received", f"Line {index} received", default=True
                ),
            }
        )
        reader.errors.extend(line_reader.errors)
    return lines


def receive_purchase_order(po_id, payload: dict | None, context: SessionContext) -> GoodsReceipt:
    """Record a goods receipt against ``po_id`` and mark it received.

    Stock quantities only move when ``LINK_ORDERS_TO_STOCK`` is enabled, and
    then a purchase order that is already received is refused.
    """

    po = purchase_orders.get(po_id)
    payload = payload or {}
    reader = PayloadReader(payload)
    grn_number = reader.text("grn_number", "GRN number") or f"GRN-{int(time.time() * 1000)}"
    received_date = reader.date("received_date", "Received date", default=date.today())
    received_by = reader.text("received_by", "Received by") or context.name
    notes = reader.text("notes", "Notes")
    if reader.has("lines"):
        lines = _read_receipt_lines(payload.get("lines"), reader)
    else:
        lines = default_receipt_lines(po)
    if GoodsReceipt.query.filter_by(grn_number=grn_number).first() is not None:
        reader.errors.append(f"GRN number {grn_number} is already in use.")
    reader.raise_for_errors()

    linked = current_app.config.get("LINK_ORDERS_TO_STOCK")
    if linked and po.status == PurchaseOrderStatus.RECEIVED:
        raise ConflictError(f"Purchase order {po.po_number} has already been received.")

    apply_transition(po, PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.TRANSITIONS, label="Purchase order")

    receipt = GoodsReceipt(
        grn_number=grn_number,
        purchase_order=po,
        received_date=received_date or date.today(),
        received_by=received_by,
        notes=notes,
        lines=lines,
    )
    db.session.add(receipt)

    if linked:
        for line in lines:
            if line["is_received"]:
                receive_into_stock(line["product_id"], line["product_name"], line["received_quantity"])

    record_activity(
        ActivityEvent.SHIPMENT,
        f"Goods received for {po.po_number} ({grn_number})",
        user_name=context.name,
    )
    db.session.commit()
    logger.info("Recorded %s against %s", grn_number, po.po_number)
    return receipt
