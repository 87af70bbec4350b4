import os
import sys
from datetime import date
from decimal import Decimal

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockdesk import derived


@pytest.mark.parametrize(
    "current, minimum, maximum, expected",
    [
        (0, 10, 100, derived.STOCK_OUT),
        (32, 50, 200, derived.STOCK_LOW),
        (50, 50, 200, derived.STOCK_LOW),
        (200, 50, 200, derived.STOCK_OVER),
        (150, 50, 500, derived.STOCK_NORMAL),
    ],
)
def test_stock_status(current, minimum, maximum, expected):
    assert derived.stock_status(current, minimum, maximum) == expected


def test_out_of_stock_wins_even_with_zero_minimum():
    assert derived.stock_status(0, 0, 0) == derived.STOCK_OUT


def test_product_status_has_no_overstock():
    assert derived.product_status(1000, 10) == derived.PRODUCT_ACTIVE
    assert derived.product_status(5, 10) == derived.STOCK_LOW
    assert derived.product_status(0, 10) == derived.STOCK_OUT


def test_adjustments():
    assert derived.adjusted_quantity(32, derived.ADJUST_ADD, 18) == 50
    assert derived.adjusted_quantity(32, derived.ADJUST_REMOVE, 40) == 0
    assert derived.adjusted_quantity(32, derived.ADJUST_SET, 7) == 7


def test_adjustment_rejects_negative_and_unknown():
    with pytest.raises(ValueError):
        derived.adjusted_quantity(10, derived.ADJUST_ADD, -1)
    with pytest.raises(ValueError):
        derived.adjusted_quantity(10, "transfer", 1)


def test_line_and_order_totals():
    first = derived.line_total(50, Decimal("12.99"))
    second = derived.line_total(25, "8.99")

    assert first == Decimal("649.50")
    assert second == Decimal("224.75")
    assert derived.order_total([first, second]) == Decimal("874.25")


def test_money_rounds_half_up():
    assert derived.money(Decimal("87.425")) == Decimal("87.43")
    assert derived.money(None) == Decimal("0.00")
    with pytest.raises(ValueError):
        derived.money("twelve")


def test_reorder_quantity_never_negative():
    assert derived.reorder_quantity(32, 200) == 168
    assert derived.reorder_quantity(300, 200) == 0


def test_expires_within_horizon():
    today = date(2024, 6, 1)
    assert derived.expires_within(date(2024, 7, 1), today, 30)
    assert not derived.expires_within(date(2024, 7, 2), today, 30)
    assert derived.expires_within(date(2024, 1, 1), today, 30)
    assert not derived.expires_within(None, today, 30)


@pytest.mark.parametrize(
    "occupied, capacity, level",
    [
        (75, 100, derived.UTILIZATION_WARNING),
        (92, 100, derived.UTILIZATION_CRITICAL),
        (40, 100, derived.UTILIZATION_OK),
        (0, 0, derived.UTILIZATION_OK),
        (5, 0, derived.UTILIZATION_CRITICAL),
    ],
)
def test_utilization_levels(occupied, capacity, level):
    assert derived.utilization_level(derived.utilization_percent(occupied, capacity)) == level


def test_codes_and_numbers():
    assert derived.location_code("A1", "S2", "B3") == "A1-S2-B3"
    assert derived.sequence_number("PO", 2024, 0) == "PO-2024-001"
    assert derived.sequence_number("SO", 2024, 11) == "SO-2024-012"
