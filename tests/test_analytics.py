import csv
import io
import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import ActivityEvent, SalesOrder
from stockdesk.services import analytics


@pytest.fixture
def app():
    app = create_app({"TESTING": True, "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    client = app.test_client()
    client.post(
        "/auth/login",
        json={"email": "admin@inventorypro.com", "password": "admin123"},
    )
    return client


def test_dashboard_summary(client):
    payload = client.get("/").get_json()

    assert payload["stats"] == {
        "total_products": 3,
        "stock_value": 2748.18,
        "low_stock_items": 1,
        "warehouses": 3,
    }
    assert len(payload["recent_activity"]) == 4
    assert {event["type"] for event in payload["recent_activity"]} == {
        ActivityEvent.STOCK_UPDATE,
        ActivityEvent.ORDER,
        ActivityEvent.SHIPMENT,
        ActivityEvent.ALERT,
    }
    assert [alert["product_name"] for alert in payload["low_stock_alerts"]] == ["Wireless Mouse"]


def test_dashboard_activity_is_capped(client):
    for number in range(12):
        db.session.add(ActivityEvent(event_type=ActivityEvent.ALERT, message=f"Alert {number}", user_name="System"))
    db.session.commit()

    assert len(client.get("/").get_json()["recent_activity"]) == 10


def test_everyone_sees_the_dashboard(client):
    client.post("/auth/login", json={"email": "auditor@inventorypro.com", "password": "demo123"})

    assert client.get("/").status_code == 200


def test_monthly_trends_exclude_cancelled(client):
    trends = client.get("/analytics/").get_json()["sales_vs_purchases"]

    assert trends == [{"month": "2024-01", "sales": 874.25, "purchases": 1748.5}]

    order = SalesOrder.query.filter_by(order_number="SO-2024-001").one()
    client.post(f"/sales/{order.id}/cancel")

    assert analytics.monthly_trends() == [{"month": "2024-01", "sales": 0.0, "purchases": 1748.5}]


def test_category_and_warehouse_breakdowns(client):
    payload = client.get("/analytics/").get_json()

    assert payload["category_distribution"] == [
        {"name": "Electronics", "count": 2, "value": 66.7},
        {"name": "Office Supplies", "count": 1, "value": 33.3},
    ]
    values = {row["warehouse"]: row["value"] for row in payload["warehouse_values"]}
    assert values == {
        "Distribution Center": 799.68,
        "Main Warehouse": 1948.5,
        "West Coast Hub": 0.0,
    }


def test_inventory_report_csv(client):
    response = client.get("/analytics/inventory-report.csv")

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert "attachment; filename=inventory-report-" in response.headers["Content-Disposition"]

    rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
    assert rows[0][:3] == ["SKU", "Product", "Warehouse"]
    assert rows[1] == [
        "ELE-023",
        "Wireless Mouse",
        "Distribution Center",
        "C1-S2-B7",
        "32",
        "50",
        "200",
        "Low Stock",
        "24.99",
        "799.68",
    ]
    assert len(rows) == 3


def test_staff_cannot_open_analytics(client):
    client.post("/auth/login", json={"email": "staff@inventorypro.com", "password": "demo123"})

    assert client.get("/analytics/").status_code == 403
