import os
import sys
from datetime import date

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import Order


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
        json={"email": "staff@inventorypro.com", "password": "demo123"},
    )
    return client


def test_filter_by_status_and_search(client):
    pending = client.get("/orders/?status=Pending").get_json()["orders"]
    found = client.get("/orders/?q=abc").get_json()["orders"]
    everything = client.get("/orders/?status=all").get_json()

    assert [order["order_number"] for order in pending] == ["ORD-2024-002"]
    assert [order["customer"] for order in found] == ["ABC Corporation"]
    assert len(everything["orders"]) == 3
    assert everything["stats"]["total"] == 3
    assert everything["stats"]["shipped"] == 1


def test_create_order(client):
    response = client.post(
        "/orders/",
        json={"customer": "Globex", "warehouse": "Main Warehouse", "priority": "High", "items": 4, "total": "320.00"},
    )

    assert response.status_code == 201
    payload = response.get_json()
    assert payload["status"] == "Pending"
    assert payload["order_date"] == date.today().isoformat()
    assert payload["order_number"] == f"ORD-{date.today().year}-004"
    assert payload["priority"] == "High"
    assert payload["total"] == 320.0


def test_create_requires_customer_and_warehouse(client):
    response = client.post("/orders/", json={})

    assert response.status_code == 400
    assert response.get_json()["errors"] == ["Customer is required.", "Warehouse is required."]


def test_status_changes_without_guard(client):
    order = Order.query.filter_by(order_number="ORD-2024-002").one()

    delivered = client.patch(f"/orders/{order.id}", json={"status": "Delivered", "priority": "Low"})
    reopened = client.patch(f"/orders/{order.id}", json={"status": "Pending"})

    assert delivered.get_json()["status"] == "Delivered"
    assert delivered.get_json()["priority"] == "Low"
    assert reopened.get_json()["status"] == "Pending"


def test_update_needs_a_field(client):
    order = Order.query.filter_by(order_number="ORD-2024-002").one()

    response = client.patch(f"/orders/{order.id}", json={})

    assert response.status_code == 400


def test_auditor_cannot_open_orders(client):
    client.post("/auth/login", json={"email": "auditor@inventorypro.com", "password": "demo123"})

    assert client.get("/orders/").status_code == 403
