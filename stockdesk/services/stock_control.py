from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Sequence

from flask import current_app
from sqlalchemy import func, or_

from stockdesk import derived
from stockdesk.activity import record_activity
from stockdesk.exceptions import InsufficientStock
from stockdesk.extensions import db
from stockdesk.models import ActivityEvent, BatchStatus, Product, StockBatch, StockItem, Warehouse
from stockdesk.permissions import SessionContext
from stockdesk.store import RecordStore
from stockdesk.utils.parsing import PayloadReader

logger = logging.getLogger(__name__)

stock_items: RecordStore[StockItem] = RecordStore(StockItem, label="Stock item")


def list_stock_items(search: str | None = None) -> list[StockItem]:
    query = StockItem.query.join(Product, Product.id == StockItem.product_id)
    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(StockItem.sku).like(pattern),
            )
        )
    return query.order_by(StockItem.id).all()


def low_stock(items: Iterable[StockItem]) -> list[StockItem]:
    return [item for item in items if (item.current_stock or 0) <= (item.min_stock or 0)]


def out_of_stock(items: Iterable[StockItem]) -> list[StockItem]:
    return [item for item in items if (item.current_stock or 0) == 0]


def expiring_soon(
    items: Iterable[StockItem],
    *,
    today: date | None = None,
    horizon_days: int | None = None,
) -> list[StockItem]:
    today = today or date.today()
    if horizon_days is None:
        horizon_days = current_app.config.get("EXPIRY_HORIZON_DAYS", 30)
    return [
        item
        for item in items
        if any(
            derived.expires_within(batch.expiry_date, today, horizon_days)
            for batch in item.batches
        )
    ]


def inventory_stats(items: Sequence[StockItem], *, today: date | None = None) -> dict[str, int]:
    return {
        "total_items": len(items),
        "low_stock": len(low_stock(items)),
        "out_of_stock": len(out_of_stock(items)),
        "expiring_soon": len(expiring_soon(items, today=today)),
    }


def reorder_suggestions(items: Iterable[StockItem]) -> list[dict]:
    suggestions = []
    for item in low_stock(items):
        suggestions.append(
            {
                "stock_item_id": item.id,
                "product_name": item.product_name,
                "sku": item.sku,
                "current_stock": item.current_stock,
                "min_stock": item.min_stock,
                "suggested_quantity": derived.reorder_quantity(item.current_stock, item.max_stock),
                "status": item.status,
            }
        )
    return suggestions


def create_stock_item(payload: dict, context: SessionContext) -> StockItem:
    reader = PayloadReader(payload)
    product_id = reader.integer("product_id", "Product", required=True, minimum=1)
    current_stock = reader.integer("current_stock", "Current stock", default=0)
    min_stock = reader.integer("min_stock", "Minimum stock", default=0)
    max_stock = reader.integer("max_stock", "Maximum stock", default=0)
    warehouse_id = reader.integer("warehouse_id", "Warehouse", minimum=1)
    location = reader.text("location", "Location")
    reader.raise_for_errors()

    product = db.session.get(Product, product_id)
    if product is None:
        reader.errors.append(f"Product {product_id} does not exist.")
    if warehouse_id and db.session.get(Warehouse, warehouse_id) is None:
        reader.errors.append(f"Warehouse {warehouse_id} does not exist.")
    reader.raise_for_errors()

    item = StockItem(
        product_id=product.id,
        sku=reader.text("sku", "SKU") or product.sku,
        current_stock=current_stock,
        min_stock=min_stock,
        max_stock=max_stock,
        warehouse_id=warehouse_id,
        location=location,
        last_updated=datetime.utcnow(),
    )
    record_activity(
        ActivityEvent.STOCK_UPDATE,
        f"Stock record created for {product.name}",
        user_name=context.name,
    )
    return stock_items.add(item)


def adjust_stock(item_id, payload: dict, context: SessionContext) -> dict:
    """Apply an add/remove/set adjustment to a stock item.

    Reason, notes and date are echoed back in the result but never stored on
    the stock item itself.
    """

    item = stock_items.get(item_id)

    reader = PayloadReader(payload)
    adjustment_type = reader.choice(
        "adjustment_type", "Adjustment type", derived.ADJUSTMENT_TYPES, required=True
    )
    quantity = reader.integer("quantity", "Quantity", required=True)
    reason = reader.text("reason", "Reason")
    notes = reader.text("notes", "Notes")
    adjustment_date = reader.date("date", "Adjustment date", default=date.today())
    reader.raise_for_errors()

    original_quantity = item.current_stock or 0
    new_quantity = derived.adjusted_quantity(original_quantity, adjustment_type, quantity)

    stock_items.update(
        item.id,
        {"current_stock": new_quantity, "last_updated": datetime.utcnow()},
        commit=False,
    )
    record_activity(
        ActivityEvent.STOCK_UPDATE,
        f"Stock updated for {item.product_name}",
        user_name=context.name,
    )
    db.session.commit()

    logger.info(
        "Stock %s for %s: %s %s -> %s by %s",
        adjustment_type,
        item.sku,
        original_quantity,
        quantity,
        new_quantity,
        context.email or context.name,
    )

    return {
        "item_id": item.id,
        "adjustment_type": adjustment_type,
        "quantity": quantity,
        "original_quantity": original_quantity,
        "new_quantity": new_quantity,
        "reason": reason,
        "notes": notes,
        "date": adjustment_date.isoformat() if adjustment_date else None,
        "adjusted_by": context.name,
        "item": item.to_dict(),
    }


def _read_batches(raw_batches) -> list[StockBatch]:
    reader = PayloadReader({})
    if not isinstance(raw_batches, (list, tuple)):
        reader.errors.append("Batches must be a list.")
        reader.raise_for_errors()

    batches: list[StockBatch] = []
    for index, raw in enumerate(raw_batches, start=1):
        batch_reader = PayloadReader(raw)
        batch_number = batch_reader.text("batch_number", f"Batch {index} number", required=True)
        quantity = batch_reader.integer("quantity", f"Batch {index} quantity", default=0)
        expiry_date = batch_reader.date("expiry_date", f"Batch {index} expiry date")
        status = batch_reader.choice(
            "status", f"Batch {index} status", BatchStatus.ALL, default=BatchStatus.GOOD
        )
        if batch_reader.errors:
            reader.errors.extend(batch_reader.errors)
            continue
        batches.append(
            StockBatch(
                batch_number=batch_number,
                quantity=quantity or 0,
                expiry_date=expiry_date,
                status=status or BatchStatus.GOOD,
            )
        )
    reader.raise_for_errors()
    return batches


def save_batches(item_id, raw_batches, context: SessionContext) -> StockItem:
    """Replace the batch list of a stock item wholesale."""

    item = stock_items.get(item_id)
    batches = _read_batches(raw_batches)

    item.batches = batches
    item.last_updated = datetime.utcnow()
    record_activity(
        ActivityEvent.STOCK_UPDATE,
        f"Batches updated for {item.product_name}",
        user_name=context.name,
    )
    db.session.commit()

    if item.batch_variance:
        logger.info(
            "Batch total for %s differs from current stock by %s",
            item.sku,
            item.batch_variance,
        )
    return item


def _first_stock_item(product_id: int | None, product_name: str | None) -> StockItem | None:
    query = StockItem.query
    if product_id:
        query = query.filter(StockItem.product_id == product_id)
    elif product_name:
        query = query.join(Product, Product.id == StockItem.product_id).filter(
            func.lower(Product.name) == product_name.lower()
        )
    else:
        return None
    return query.order_by(StockItem.id).first()


def receive_into_stock(product_id: int | None, product_name: str | None, quantity: int) -> StockItem | None:
    """Add received goods to the first stock record of the product."""

    item = _first_stock_item(product_id, product_name)
    if item is None:
        logger.warning("No stock record for %s; receipt not applied to stock", product_name)
        return None
    item.current_stock = (item.current_stock or 0) + max(quantity or 0, 0)
    item.last_updated = datetime.utcnow()
    return item


def reserve_from_stock(product_id: int | None, product_name: str | None, quantity: int) -> StockItem:
    item = _first_stock_item(product_id, product_name)
    available = (item.current_stock or 0) if item is not None else 0
    if item is None or available < quantity:
        raise InsufficientStock(product_name or str(product_id), available, quantity)
    item.current_stock = derived.adjusted_quantity(available, derived.ADJUST_REMOVE, quantity)
    item.last_updated = datetime.utcnow()
    return item
