from __future__ import annotations

import logging

from sqlalchemy import func, or_

from stockdesk.activity import record_activity
from stockdesk.exceptions import ConflictError
from stockdesk.models import ActivityEvent, Product
from stockdesk.permissions import SessionContext
from stockdesk.services.common import require_confirmation
from stockdesk.store import RecordStore
from stockdesk.utils.parsing import PayloadReader

logger = logging.getLogger(__name__)

products: RecordStore[Product] = RecordStore(Product, label="Product", order_by=Product.name)


def list_products(search: str | None = None, category: str | None = None) -> list[Product]:
    query = Product.query
    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.sku).like(pattern),
                func.lower(Product.category).like(pattern),
            )
        )
    if category and category != "all":
        query = query.filter(Product.category == category)
    return query.order_by(Product.name).all()


def list_categories() -> list[str]:
    rows = Product.query.with_entities(Product.category).distinct().order_by(Product.category)
    return [category for (category,) in rows if category]


def _read_product(reader: PayloadReader, *, partial: bool) -> dict:
    values: dict = {}

    def wanted(field: str) -> bool:
        return not partial or reader.has(field)

    if wanted("name"):
        values["name"] = reader.text("name", "Product name", required=True)
    if wanted("sku"):
        values["sku"] = reader.text("sku", "SKU", required=True)
    if wanted("price"):
        values["price"] = reader.decimal("price", "Price", required=True)
    if wanted("stock"):
        values["stock"] = reader.integer("stock", "Current stock", required=True)
    if wanted("min_stock"):
        values["min_stock"] = reader.integer("min_stock", "Minimum stock level", required=True)
    if wanted("category"):
        values["category"] = reader.text("category", "Category", default="") or ""
    for field, label in (
        ("description", "Description"),
        ("warehouse", "Warehouse"),
        ("location", "Location"),
        ("barcode", "Barcode"),
    ):
        if wanted(field):
            values[field] = reader.text(field, label)
    return values


def _ensure_unique_sku(reader: PayloadReader, sku: str | None, *, exclude_id=None) -> None:
    if not sku:
        return
    query = Product.query.filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        reader.errors.append(f"SKU {sku} is already in use.")


def create_product(payload: dict, context: SessionContext) -> Product:
    reader = PayloadReader(payload)
    values = _read_product(reader, partial=False)
    _ensure_unique_sku(reader, values.get("sku"))
    reader.raise_for_errors()

    product = Product(**values)
    record_activity(
        ActivityEvent.STOCK_UPDATE,
        f"Product {product.name} added to the catalog",
        user_name=context.name,
    )
    products.add(product)
    logger.info("Product %s added by %s", product.sku, context.name)
    return product


def update_product(product_id, payload: dict, context: SessionContext) -> Product:
    product = products.get(product_id)
    reader = PayloadReader(payload)
    values = _read_product(reader, partial=True)
    _ensure_unique_sku(reader, values.get("sku"), exclude_id=product.id)
    reader.raise_for_errors()
    return products.update(product.id, values)


def delete_product(product_id, payload: dict | None, context: SessionContext) -> None:
    product = products.get(product_id)
    require_confirmation(payload, "product")
    if product.stock_items:
        raise ConflictError(f"{product.name} still has stock records and cannot be deleted.")
    sku = product.sku
    products.delete(product.id)
    logger.info("Product %s deleted by %s", sku, context.name)
