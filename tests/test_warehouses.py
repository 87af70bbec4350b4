import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import Location, StockTransfer, Warehouse


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


def _warehouse(name="Main Warehouse"):
    return Warehouse.query.filter_by(name=name).one()


def test_list_includes_capacity(client):
    payload = client.get("/warehouses/").get_json()["warehouses"]
    by_name = {warehouse["name"]: warehouse for warehouse in payload}

    # average of 75% and 40% utilization
    assert by_name["Main Warehouse"]["capacity"] == 57.5
    assert by_name["Main Warehouse"]["location_count"] == 2
    assert by_name["West Coast Hub"]["capacity"] == 0


def test_location_utilization_levels(client):
    main = _warehouse()

    locations = client.get(f"/warehouses/{main.id}/locations").get_json()["locations"]
    assert [(location["code"], location["utilization_level"]) for location in locations] == [
        ("A1-S1-B1", "yellow"),
        ("A1-S2-B3", "green"),
    ]

    response = client.post(
        f"/warehouses/{main.id}/locations",
        json={"rack": "B2", "shelf": "S1", "bin": "B9", "capacity": 100, "occupied": 92},
    )
    assert response.status_code == 201
    assert response.get_json()["utilization_level"] == "red"
    assert response.get_json()["code"] == "B2-S1-B9"


def test_create_and_update_warehouse(client):
    response = client.post(
        "/warehouses/",
        json={"name": "North Depot", "address": "Seattle, WA", "staff": 4, "coordinates": {"lat": 47.6, "lng": -122.3}},
    )

    assert response.status_code == 201
    created = response.get_json()
    assert created["capacity"] == 0
    assert created["coordinates"] == {"lat": 47.6, "lng": -122.3}

    updated = client.patch(f"/warehouses/{created['id']}", json={"staff": 6}).get_json()
    assert updated["staff"] == 6
    assert updated["address"] == "Seattle, WA"


def test_duplicate_warehouse_name_rejected(client):
    response = client.post("/warehouses/", json={"name": "Main Warehouse", "address": "Elsewhere"})

    assert response.status_code == 400
    assert response.get_json()["errors"] == ["A warehouse named Main Warehouse already exists."]


def test_delete_requires_confirmation_and_cascades(client):
    main = _warehouse()

    refused = client.delete(f"/warehouses/{main.id}")
    assert refused.status_code == 400
    assert refused.get_json()["confirm_required"] is True

    response = client.delete(f"/warehouses/{main.id}?confirm=true")
    assert response.status_code == 200
    assert Warehouse.query.filter_by(name="Main Warehouse").first() is None
    assert Location.query.count() == 0


def test_location_scoped_to_warehouse(client):
    main = _warehouse()
    hub = _warehouse("West Coast Hub")
    location = main.locations[0]

    response = client.patch(
        f"/warehouses/{hub.id}/locations/{location.id}",
        json={"occupied": 10},
    )

    assert response.status_code == 404
    assert db.session.get(Location, location.id).occupied == 75


def test_delete_location(client):
    main = _warehouse()
    location_id = main.locations[1].id

    assert client.delete(f"/warehouses/{main.id}/locations/{location_id}").status_code == 400
    response = client.delete(
        f"/warehouses/{main.id}/locations/{location_id}",
        json={"confirm": True},
    )

    assert response.status_code == 200
    assert db.session.get(Location, location_id) is None


def test_transfer_lifecycle(client):
    response = client.post(
        "/warehouses/transfers",
        json={
            "product_sku": "ELE-023",
            "quantity": 5,
            "from_warehouse": "Distribution Center",
            "to_warehouse": "Main Warehouse",
        },
    )
    assert response.status_code == 201
    transfer = response.get_json()
    assert transfer["status"] == "pending"
    assert transfer["product_name"] == "Wireless Mouse"
    assert transfer["requested_by"] == "John Admin"
    assert transfer["completed_at"] is None

    url = f"/warehouses/transfers/{transfer['id']}/status"
    assert client.post(url, json={"status": "in-transit"}).get_json()["status"] == "in-transit"
    completed = client.post(url, json={"status": "completed"}).get_json()
    assert completed["status"] == "completed"
    assert completed["completed_at"] is not None

    refused = client.post(url, json={"status": "cancelled"})
    assert refused.status_code == 409
    assert refused.get_json() == {"error": "Transfer is completed and can no longer change."}
    assert db.session.get(StockTransfer, transfer["id"]).status == "completed"


def test_transfer_filter_and_validation(client):
    pending = client.get("/warehouses/transfers?status=pending").get_json()["transfers"]
    assert [transfer["product_sku"] for transfer in pending] == ["OFF-001"]
    assert len(client.get("/warehouses/transfers?status=all").get_json()["transfers"]) == 2

    response = client.post("/warehouses/transfers", json={"product_sku": "OFF-001", "quantity": 0})
    assert response.status_code == 400
    errors = response.get_json()["errors"]
    assert "From warehouse is required." in errors
    assert "To warehouse is required." in errors


def test_staff_transfers_but_cannot_edit_warehouses(client):
    client.post("/auth/login", json={"email": "staff@inventorypro.com", "password": "demo123"})
    transfer = StockTransfer.query.filter_by(product_sku="OFF-001").one()

    assert client.post("/warehouses/", json={"name": "X", "address": "Y"}).status_code == 403
    response = client.post(
        f"/warehouses/transfers/{transfer.id}/status",
        json={"status": "cancelled"},
    )
    assert response.status_code == 200
