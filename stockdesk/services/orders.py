"""Generic order board: customer orders tracked by status and priority."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import func, or_

from stockdesk.activity import record_activity
from stockdesk.models import ActivityEvent, Order, OrderPriority, OrderStatus
from stockdesk.permissions import SessionContext
from stockdesk.services.common import next_document_number
from stockdesk.store import RecordStore
from stockdesk.utils.parsing import PayloadReader

logger = logging.getLogger(__name__)

orders: RecordStore[Order] = RecordStore(Order, label="Order")


def list_orders(search: str | None = None, status: str | None = None) -> list[Order]:
    query = Order.query
    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                func.lower(Order.order_number).like(pattern),
                func.lower(Order.customer).like(pattern),
            )
        )
    if status and status != "all":
        query = query.filter(Order.status == status)
    return query.order_by(Order.id).all()


def order_stats(order_list) -> dict[str, int]:
    counts = {status.lower(): 0 for status in OrderStatus.ALL}
    for order in order_list:
        key = (order.status or "").lower()
        if key in counts:
            counts[key] += 1
    counts["total"] = len(order_list)
    return counts


def create_order(payload: dict, context: SessionContext) -> Order:
    reader = PayloadReader(payload)
    customer = reader.text("customer", "Customer", required=True)
    warehouse = reader.text("warehouse", "Warehouse", required=True)
    priority = reader.choice("priority", "Priority", OrderPriority.ALL, default=OrderPriority.MEDIUM)
    delivery_date = reader.date("delivery_date", "Delivery date")
    items = reader.integer("items", "Items", default=0)
    total = reader.decimal("total", "Total", default=0)
    reader.raise_for_errors()

    today = date.today()
    order = Order(
        order_number=next_document_number(Order, Order.order_number, "ORD", on=today),
        customer=customer,
        items=items or 0,
        total=total or 0,
        status=OrderStatus.PENDING,
        priority=priority or OrderPriority.MEDIUM,
        order_date=today,
        delivery_date=delivery_date,
        warehouse=warehouse,
    )
    record_activity(
        ActivityEvent.ORDER,
        f"Order {order.order_number} created for {customer}",
        user_name=context.name,
    )
    orders.add(order)
    logger.info("Order %s created by %s", order.order_number, context.name)
    return order


def update_order(order_id, payload: dict, context: SessionContext) -> Order:
    """Change status and/or priority; any listed value may follow any other."""

    order = orders.get(order_id)
    reader = PayloadReader(payload)
    patch: dict = {}
    if reader.has("status"):
        patch["status"] = reader.choice("status", "Status", OrderStatus.ALL, required=True)
    if reader.has("priority"):
        patch["priority"] = reader.choice("priority", "Priority", OrderPriority.ALL, required=True)
    if reader.has("delivery_date"):
        patch["delivery_date"] = reader.date("delivery_date", "Delivery date")
    if not patch and not reader.errors:
        reader.errors.append("Nothing to update; send status or priority.")
    reader.raise_for_errors()

    if "status" in patch and patch["status"] != order.status:
        record_activity(
            ActivityEvent.SHIPMENT if patch["status"] == OrderStatus.SHIPPED else ActivityEvent.ORDER,
            f"Order {order.order_number} marked {patch['status']}",
            user_name=context.name,
        )
    return orders.update(order.id, patch)
