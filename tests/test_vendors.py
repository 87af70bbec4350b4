import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import Customer, Vendor


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
        json={"email": "manager@inventorypro.com", "password": "demo123"},
    )
    return client


SUPPLIER = {
    "name": "Paper World",
    "contact_person": "Pat Lee",
    "email": "pat@paperworld.example",
    "phone": "+1-555-0199",
    "address": "9 Mill Road, Portland, OR",
    "payment_terms": "Net 45",
}


def test_overview_stats(client):
    payload = client.get("/vendors/").get_json()

    assert [vendor["code"] for vendor in payload["vendors"]] == ["V001"]
    assert [customer["code"] for customer in payload["customers"]] == ["C001"]
    assert payload["stats"] == {
        "total_vendors": 1,
        "active_vendors": 1,
        "total_customers": 1,
        "active_customers": 1,
    }


def test_search_by_contact_person(client):
    payload = client.get("/vendors/?q=JANE").get_json()

    assert payload["vendors"] == []
    assert [customer["name"] for customer in payload["customers"]] == ["Tech Solutions Inc"]


def test_create_supplier_assigns_code(client):
    response = client.post("/vendors/suppliers", json=SUPPLIER)

    assert response.status_code == 201
    payload = response.get_json()
    assert payload["code"] == "V002"
    assert payload["status"] == "Active"
    assert payload["payment_terms"] == "Net 45"
    assert payload["documents"] == []
    assert Vendor.query.count() == 2


def test_create_customer_with_credit_limit(client):
    response = client.post(
        "/vendors/customers",
        json=dict(SUPPLIER, name="Acme Retail", credit_limit="12500"),
    )

    assert response.status_code == 201
    payload = response.get_json()
    assert payload["code"] == "C002"
    assert payload["credit_limit"] == 12500.0
    assert payload["payment_terms"] == "Net 45"


def test_required_fields_reported(client):
    response = client.post("/vendors/suppliers", json={"name": "Half Filled"})

    assert response.status_code == 400
    assert response.get_json()["errors"] == [
        "Contact person is required.",
        "Email is required.",
        "Phone is required.",
        "Address is required.",
    ]


def test_status_toggles_without_guard(client):
    vendor = Vendor.query.filter_by(code="V001").one()

    blacklisted = client.post(f"/vendors/suppliers/{vendor.id}/status", json={"status": "Blacklisted"})
    restored = client.post(f"/vendors/suppliers/{vendor.id}/status", json={"status": "Active"})

    assert blacklisted.get_json()["status"] == "Blacklisted"
    assert restored.get_json()["status"] == "Active"


def test_invalid_status_rejected(client):
    customer = Customer.query.filter_by(code="C001").one()

    response = client.post(f"/vendors/customers/{customer.id}/status", json={"status": "Frozen"})

    assert response.status_code == 400
    assert db.session.get(Customer, customer.id).status == "Active"


def test_update_keeps_unsent_fields(client):
    customer = Customer.query.filter_by(code="C001").one()

    response = client.patch(f"/vendors/customers/{customer.id}", json={"phone": "+1-555-0000"})

    payload = response.get_json()
    assert payload["phone"] == "+1-555-0000"
    assert payload["email"] == "jane@techsolutions.com"
    assert payload["credit_limit"] == 50000.0


def test_unknown_kind_or_id(client):
    assert client.get("/vendors/partners").status_code == 404
    assert client.get("/vendors/suppliers/999").status_code == 404


def test_staff_cannot_manage_partners(client):
    client.post("/auth/login", json={"email": "staff@inventorypro.com", "password": "demo123"})

    assert client.get("/vendors/").status_code == 403
