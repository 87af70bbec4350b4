"""Pure derivations shared by the models, services and routes.

Nothing in this module touches the database; every function takes plain
values and returns plain values so the same rules apply to ORM records,
request payloads and tests alike.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

CENTS = Decimal("0.01")

STOCK_OUT = "Out of Stock"
STOCK_LOW = "Low Stock"
STOCK_OVER = "Overstock"
STOCK_NORMAL = "Normal"

PRODUCT_ACTIVE = "Active"

ADJUST_ADD = "add"
ADJUST_REMOVE = "remove"
ADJUST_SET = "set"
ADJUSTMENT_TYPES = (ADJUST_ADD, ADJUST_REMOVE, ADJUST_SET)

UTILIZATION_CRITICAL = "red"
UTILIZATION_WARNING = "yellow"
UTILIZATION_OK = "green"


def money(value) -> Decimal:
    """Return ``value`` as a Decimal rounded half-up to cents."""

    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        value = str(value)
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"{value!r} is not a valid amount.") from None
    return number.quantize(CENTS, rounding=ROUND_HALF_UP)


def stock_status(current_stock: int, min_stock: int, max_stock: int) -> str:
    current = current_stock or 0
    if current == 0:
        return STOCK_OUT
    if current <= (min_stock or 0):
        return STOCK_LOW
    if current >= (max_stock or 0):
        return STOCK_OVER
    return STOCK_NORMAL


def product_status(stock: int, min_stock: int) -> str:
    current = stock or 0
    if current == 0:
        return STOCK_OUT
    if current <= (min_stock or 0):
        return STOCK_LOW
    return PRODUCT_ACTIVE


def adjusted_quantity(current_stock: int, adjustment_type: str, quantity: int) -> int:
    """Apply a stock adjustment and return the resulting on-hand quantity."""

    if quantity is None or quantity < 0:
        raise ValueError("Adjustment quantity cannot be negative.")
    current = current_stock or 0
    if adjustment_type == ADJUST_ADD:
        return current + quantity
    if adjustment_type == ADJUST_REMOVE:
        return max(0, current - quantity)
    if adjustment_type == ADJUST_SET:
        return quantity
    raise ValueError(f"Unknown adjustment type {adjustment_type!r}.")


def line_total(quantity: int, unit_price) -> Decimal:
    return money(Decimal(quantity or 0) * money(unit_price))


def order_total(line_totals: Iterable[Decimal]) -> Decimal:
    return money(sum((money(total) for total in line_totals), Decimal("0")))


def reorder_quantity(current_stock: int, max_stock: int) -> int:
    return max(0, (max_stock or 0) - (current_stock or 0))


def expires_within(expiry_date: date | None, today: date, horizon_days: int) -> bool:
    if expiry_date is None:
        return False
    return expiry_date <= today + timedelta(days=horizon_days)


def utilization_percent(occupied: int, capacity: int) -> float:
    occupied = occupied or 0
    if not capacity or capacity <= 0:
        return 0.0 if occupied <= 0 else 100.0
    return occupied / capacity * 100


def utilization_level(percent: float) -> str:
    if percent >= 90:
        return UTILIZATION_CRITICAL
    if percent >= 70:
        return UTILIZATION_WARNING
    return UTILIZATION_OK


def location_code(rack: str, shelf: str, bin_code: str) -> str:
    return f"{rack}-{shelf}-{bin_code}"


def sequence_number(prefix: str, year: int, existing_count: int) -> str:
    """Build document numbers such as ``PO-2024-001``."""

    return f"{prefix}-{year}-{existing_count + 1:03d}"
