"""Dashboard and analytics figures, recomputed from the stores on every read."""

from __future__ import annotations

from collections import OrderedDict, defaultdict
from decimal import Decimal

from stockdesk import derived
from stockdesk.activity import recent_activity
from stockdesk.models import (
    Product,
    PurchaseOrder,
    PurchaseOrderStatus,
    SalesOrder,
    SalesOrderStatus,
    StockItem,
    Warehouse,
)
from stockdesk.services.stock_control import low_stock, reorder_suggestions

UNASSIGNED_WAREHOUSE = "Unassigned"


def stock_item_value(item: StockItem) -> Decimal:
    price = item.product.price if item.product is not None else 0
    return derived.line_total(item.current_stock or 0, price)


def stock_value(items) -> Decimal:
    return derived.order_total(stock_item_value(item) for item in items)


def dashboard_summary(*, activity_limit: int = 10) -> dict:
    items = StockItem.query.order_by(StockItem.id).all()
    low_items = low_stock(items)
    return {
        "stats": {
            "total_products": Product.query.count(),
            "stock_value": float(stock_value(items)),
            "low_stock_items": len(low_items),
            "warehouses": Warehouse.query.count(),
        },
        "recent_activity": [event.to_dict() for event in recent_activity(activity_limit)],
        "low_stock_alerts": reorder_suggestions(low_items),
    }


def monthly_trends() -> list[dict]:
    """Sales and purchase order totals per ``YYYY-MM`` of the order date."""

    sales: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    purchases: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))

    for order in SalesOrder.query.filter(SalesOrder.status != SalesOrderStatus.CANCELLED):
        sales[order.order_date.strftime("%Y-%m")] += derived.money(order.total_amount)
    for po in PurchaseOrder.query.filter(PurchaseOrder.status != PurchaseOrderStatus.CANCELLED):
        purchases[po.order_date.strftime("%Y-%m")] += derived.money(po.total_amount)

    months = sorted(set(sales) | set(purchases))
    return [
        {
            "month": month,
            "sales": float(derived.money(sales.get(month))),
            "purchases": float(derived.money(purchases.get(month))),
        }
        for month in months
    ]


def category_distribution() -> list[dict]:
    counts: "OrderedDict[str, int]" = OrderedDict()
    for product in Product.query.order_by(Product.category, Product.name):
        name = product.category or "Uncategorized"
        counts[name] = counts.get(name, 0) + 1

    total = sum(counts.values())
    if not total:
        return []
    return [
        {"name": name, "count": count, "value": round(count / total * 100, 1)}
        for name, count in counts.items()
    ]


def warehouse_values() -> list[dict]:
    totals: "OrderedDict[str, Decimal]" = OrderedDict(
        (warehouse.name, Decimal("0")) for warehouse in Warehouse.query.order_by(Warehouse.name)
    )
    for item in StockItem.query.order_by(StockItem.id):
        name = item.warehouse.name if item.warehouse is not None else UNASSIGNED_WAREHOUSE
        totals[name] = totals.get(name, Decimal("0")) + stock_item_value(item)
    return [{"warehouse": name, "value": float(derived.money(value))} for name, value in totals.items()]


def analytics_overview() -> dict:
    return {
        "sales_vs_purchases": monthly_trends(),
        "category_distribution": category_distribution(),
        "warehouse_values": warehouse_values(),
    }


INVENTORY_REPORT_COLUMNS = (
    ("sku", "SKU"),
    ("product_name", "Product"),
    ("warehouse", "Warehouse"),
    ("location", "Location"),
    ("current_stock", "Current Stock"),
    ("min_stock", "Min Stock"),
    ("max_stock", "Max Stock"),
    ("status", "Status"),
    ("unit_price", "Unit Price"),
    ("stock_value", "Stock Value"),
)


def inventory_report_rows() -> list[dict]:
    rows = []
    for item in StockItem.query.order_by(StockItem.sku):
        rows.append(
            {
                "sku": item.sku,
                "product_name": item.product_name,
                "warehouse": item.warehouse.name if item.warehouse is not None else "",
                "location": item.location,
                "current_stock": item.current_stock,
                "min_stock": item.min_stock,
                "max_stock": item.max_stock,
                "status": item.status,
                "unit_price": derived.money(item.product.price if item.product else 0),
                "stock_value": stock_item_value(item),
            }
        )
    return rows
