from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal

from flask import current_app
from sqlalchemy import func, or_

from stockdesk import derived
from stockdesk.activity import record_activity
from stockdesk.exceptions import ConflictError
from stockdesk.extensions import db
from stockdesk.models import (
    ActivityEvent,
    Customer,
    SalesOrder,
    SalesOrderLine,
    SalesOrderStatus,
)
from stockdesk.permissions import SessionContext
from stockdesk.services.common import (
    apply_transition,
    build_lines,
    lines_total,
    next_document_number,
)
from stockdesk.services.partners import append_order_history
from stockdesk.services.stock_control import reserve_from_stock
from stockdesk.store import RecordStore
from stockdesk.utils.parsing import PayloadReader

logger = logging.getLogger(__name__)

sales_orders: RecordStore[SalesOrder] = RecordStore(SalesOrder, label="Sales order")

CURRENCIES = ("USD", "EUR", "GBP", "JPY")


def list_sales_orders(search: str | None = None) -> list[SalesOrder]:
    query = SalesOrder.query
    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                func.lower(SalesOrder.order_number).like(pattern),
                func.lower(SalesOrder.customer_name).like(pattern),
            )
        )
    return query.order_by(SalesOrder.order_date.desc(), SalesOrder.id.desc()).all()


def sales_order_stats(orders) -> dict:
    revenue = derived.order_total(
        order.total_amount for order in orders if order.status != SalesOrderStatus.CANCELLED
    )
    return {
        "total_orders": len(orders),
        "pending": sum(1 for order in orders if order.status in SalesOrderStatus.OPEN),
        "confirmed": sum(1 for order in orders if order.status == SalesOrderStatus.CONFIRMED),
        "dispatched": sum(1 for order in orders if order.status == SalesOrderStatus.DISPATCHED),
        "revenue": float(revenue),
    }


def _resolve_customer(reader: PayloadReader):
    customer_id = reader.integer("customer_id", "Customer", minimum=1)
    customer = db.session.get(Customer, customer_id) if customer_id else None
    if customer_id and customer is None:
        reader.errors.append(f"Customer {customer_id} does not exist.")
    customer_name = reader.text(
        "customer_name", "Customer name", default=customer.name if customer else None
    ) or (customer.name if customer else None)
    if customer_name is None:
        reader.errors.append("Customer is required.")
    return customer, customer_name


def create_sales_order(payload: dict, context: SessionContext) -> SalesOrder:
    reader = PayloadReader(payload)
    customer, customer_name = _resolve_customer(reader)
    order_date = reader.date("order_date", "Order date", default=date.today())
    delivery_date = reader.date("delivery_date", "Delivery date")
    currency = reader.choice(
        "currency",
        "Currency",
        CURRENCIES,
        default=current_app.config.get("DEFAULT_CURRENCY", "USD"),
    )
    status = reader.choice("status", "Status", SalesOrderStatus.ALL, default=SalesOrderStatus.DRAFT)
    raw_items = payload.get("items") if isinstance(payload, dict) else None
    lines = build_lines(raw_items, SalesOrderLine, reader.errors)
    reader.raise_for_errors()

    order = SalesOrder(
        order_number=reader.text("order_number", "Order number")
        or next_document_number(SalesOrder, SalesOrder.order_number, "SO", on=order_date),
        customer_id=customer.id if customer else None,
        customer_name=customer_name,
        status=status or SalesOrderStatus.DRAFT,
        currency=currency or "USD",
        order_date=order_date or date.today(),
        delivery_date=delivery_date,
        items=lines,
        total_amount=lines_total(lines),
    )
    append_order_history(Customer, order.customer_id, order.order_number)
    record_activity(
        ActivityEvent.ORDER,
        f"Sales order {order.order_number} created for {customer_name}",
        user_name=context.name,
    )
    return sales_orders.add(order)


def update_sales_order(order_id, payload: dict, context: SessionContext) -> SalesOrder:
    order = sales_orders.get(order_id)
    reader = PayloadReader(payload)
    patch: dict = {}

    if reader.has("customer_id") or reader.has("customer_name"):
        customer, customer_name = _resolve_customer(reader)
        patch["customer_id"] = customer.id if customer else None
        patch["customer_name"] = customer_name
    if reader.has("order_date"):
        patch["order_date"] = reader.date("order_date", "Order date", required=True)
    if reader.has("delivery_date"):
        patch["delivery_date"] = reader.date("delivery_date", "Delivery date")
    if reader.has("currency"):
        patch["currency"] = reader.choice("currency", "Currency", CURRENCIES, required=True)
    status = None
    if reader.has("status"):
        status = reader.choice("status", "Status", SalesOrderStatus.ALL, required=True)
    lines = None
    if reader.has("items"):
        lines = build_lines(payload.get("items"), SalesOrderLine, reader.errors)
    reader.raise_for_errors()

    if status is not None:
        apply_transition(order, status, SalesOrderStatus.TRANSITIONS, label="Sales order")
    if lines is not None:
        patch["items"] = lines
        patch["total_amount"] = lines_total(lines)

    sales_orders.update(order.id, patch, commit=False)
    record_activity(
        ActivityEvent.ORDER,
        f"Sales order {order.order_number} updated",
        user_name=context.name,
    )
    db.session.commit()
    return order


def _transition(order_id, target: str, context: SessionContext, verb: str, *, event_type=ActivityEvent.ORDER):
    order = sales_orders.get(order_id)
    previous = apply_transition(order, target, SalesOrderStatus.TRANSITIONS, label="Sales order")
    record_activity(event_type, f"Sales order {order.order_number} {verb}", user_name=context.name)
    db.session.commit()
    logger.info("Sales order %s %s -> %s by %s", order.order_number, previous, target, context.name)
    return order


def confirm_sales_order(order_id, context: SessionContext) -> SalesOrder:
    return _transition(order_id, SalesOrderStatus.CONFIRMED, context, "confirmed")


def reserve_sales_order(order_id, context: SessionContext) -> SalesOrder:
    """Mark the order reserved and flag every line as reserved.

    With ``LINK_ORDERS_TO_STOCK`` enabled each line also draws its quantity
    from stock, and a shortfall on any line refuses the whole reservation.
    """

    order = sales_orders.get(order_id)
    linked = current_app.config.get("LINK_ORDERS_TO_STOCK")
    if linked and order.items and all(line.reserved for line in order.items):
        raise ConflictError(f"Sales order {order.order_number} is already reserved.")
    apply_transition(order, SalesOrderStatus.RESERVED, SalesOrderStatus.TRANSITIONS, label="Sales order")

    if linked:
        try:
            for line in order.items:
                reserve_from_stock(line.product_id, line.product_name, line.quantity or 0)
        except ValueError:
            db.session.rollback()
            raise

    for line in order.items:
        line.reserved = True
    record_activity(
        ActivityEvent.ORDER,
        f"Stock reserved for {order.order_number}",
        user_name=context.name,
    )
    db.session.commit()
    logger.info("Sales order %s reserved by %s", order.order_number, context.name)
    return order


def dispatch_sales_order(order_id, context: SessionContext) -> SalesOrder:
    return _transition(
        order_id,
        SalesOrderStatus.DISPATCHED,
        context,
        "dispatched",
        event_type=ActivityEvent.SHIPMENT,
    )


def deliver_sales_order(order_id, context: SessionContext) -> SalesOrder:
    return _transition(
        order_id,
        SalesOrderStatus.DELIVERED,
        context,
        "delivered",
        event_type=ActivityEvent.SHIPMENT,
    )


def cancel_sales_order(order_id, context: SessionContext) -> SalesOrder:
    return _transition(order_id, SalesOrderStatus.CANCELLED, context, "cancelled")


def build_invoice(order: SalesOrder, *, today: date | None = None) -> dict:
    """Project a sales order into invoice figures without changing it."""

    today = today or date.today()
    tax_rate = Decimal(str(current_app.config.get("INVOICE_TAX_RATE", "0.10")))
    due_days = int(current_app.config.get("INVOICE_DUE_DAYS", 30))

    subtotal = derived.money(order.total_amount)
    tax = derived.money(subtotal * tax_rate)
    total = derived.money(subtotal + tax)

    return {
        "invoice_number": f"INV-{order.order_number.replace('SO-', '', 1)}",
        "invoice_date": today.isoformat(),
        "due_date": (today + timedelta(days=due_days)).isoformat(),
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "currency": order.currency,
        "company": {
            "name": current_app.config.get("COMPANY_NAME"),
            "address": current_app.config.get("COMPANY_ADDRESS"),
            "phone": current_app.config.get("COMPANY_PHONE"),
            "email": current_app.config.get("COMPANY_EMAIL"),
        },
        "items": [line.to_dict() for line in order.items],
        "subtotal": float(subtotal),
        "tax_rate": float(tax_rate),
        "tax": float(tax),
        "total": float(total),
    }
