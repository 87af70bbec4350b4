import json
import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import AppSetting


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


def login_as_manager(client):
    client.post("/auth/login", json={"email": "manager@inventorypro.com", "password": "demo123"})


def test_defaults(client):
    payload = client.get("/settings/").get_json()

    assert payload["settings"]["general"]["currency"] == "USD"
    assert payload["settings"]["general"]["low_stock_threshold"] == 10
    assert payload["settings"]["notifications"]["sms"] is False
    assert payload["settings"]["backup"]["retention_days"] == 30
    assert payload["choices"]["retention_days"] == [7, 30, 90, 365]
    assert payload["can_change"] is True


def test_admin_updates_general_section(client):
    response = client.put(
        "/settings/general",
        json={"currency": "EUR", "timezone": "GMT", "low_stock_threshold": 25, "auto_reorder": True},
    )

    assert response.status_code == 200
    assert response.get_json()["currency"] == "EUR"

    setting = AppSetting.query.filter_by(key="general").one()
    assert setting.value["currency"] == "EUR"
    assert setting.value["language"] == "en"
    assert setting.updated_by == "admin@inventorypro.com"
    assert client.get("/settings/general").get_json()["auto_reorder"] is True


def test_invalid_choices_rejected(client):
    response = client.put("/settings/general", json={"currency": "AUD", "low_stock_threshold": -1})

    assert response.status_code == 400
    assert len(response.get_json()["errors"]) == 2
    assert AppSetting.query.filter_by(key="general").first() is None


def test_backup_retention_must_be_listed(client):
    assert client.put("/settings/backup", json={"retention_days": 45}).status_code == 400

    response = client.put("/settings/backup", json={"retention_days": "90", "auto_backup": "yes"})
    assert response.status_code == 200
    assert response.get_json() == {"auto_backup": True, "retention_days": 90}


def test_notification_flags(client):
    response = client.put("/settings/notifications", json={"sms": True, "email": False})

    assert response.get_json()["sms"] is True
    assert response.get_json()["email"] is False
    assert response.get_json()["low_stock"] is True


def test_unknown_section(client):
    assert client.get("/settings/appearance").status_code == 404
    assert client.put("/settings/appearance", json={}).status_code == 404


def test_manager_reads_but_cannot_change(client):
    login_as_manager(client)

    payload = client.get("/settings/").get_json()
    assert payload["can_change"] is False
    assert client.put("/settings/general", json={"currency": "EUR"}).status_code == 403
    assert client.get("/settings/export").status_code == 403


def test_staff_cannot_read_settings(client):
    client.post("/auth/login", json={"email": "staff@inventorypro.com", "password": "demo123"})

    assert client.get("/settings/").status_code == 403


def test_full_export(client):
    client.put("/settings/general", json={"currency": "GBP"})

    response = client.get("/settings/export?scope=full")

    assert response.status_code == 200
    assert response.headers["Content-Disposition"].startswith("attachment; filename=stockdesk-full-")
    snapshot = json.loads(response.get_data(as_text=True))
    assert snapshot["scope"] == "full"
    assert snapshot["exported_by"] == "admin@inventorypro.com"
    assert len(snapshot["products"]) == 3
    assert len(snapshot["sales_orders"]) == 1
    assert snapshot["settings"]["general"]["currency"] == "GBP"
    assert all("password_hash" not in user for user in snapshot["users"])


def test_inventory_export_and_unknown_scope(client):
    snapshot = json.loads(client.get("/settings/export?scope=inventory").get_data(as_text=True))

    assert set(snapshot) == {
        "scope",
        "exported_at",
        "exported_by",
        "products",
        "stock_items",
        "warehouses",
        "locations",
    }
    assert client.get("/settings/export?scope=everything").status_code == 400
