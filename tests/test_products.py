import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import Product


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


NEW_PRODUCT = {
    "name": "Desk Lamp",
    "sku": "FUR-010",
    "category": "Furniture",
    "price": "39.90",
    "stock": 12,
    "min_stock": 5,
}


def test_list_search_and_category(client):
    assert [p["sku"] for p in client.get("/products/?q=usb").get_json()["products"]] == ["ELE-045"]
    electronics = client.get("/products/?category=Electronics").get_json()["products"]
    assert sorted(p["sku"] for p in electronics) == ["ELE-023", "ELE-045"]
    assert client.get("/products/categories").get_json()["categories"] == [
        "Electronics",
        "Office Supplies",
    ]


def test_product_status(client):
    products = {p["sku"]: p for p in client.get("/products/").get_json()["products"]}

    assert products["OFF-001"]["status"] == "Active"
    assert products["ELE-023"]["status"] == "Low Stock"


def test_create_product(client):
    response = client.post("/products/", json=NEW_PRODUCT)

    assert response.status_code == 201
    payload = response.get_json()
    assert payload["price"] == 39.9
    assert payload["status"] == "Active"
    assert Product.query.filter_by(sku="FUR-010").one().name == "Desk Lamp"


def test_create_requires_fields(client):
    response = client.post("/products/", json={"name": "Nameless"})

    assert response.status_code == 400
    assert response.get_json()["errors"] == [
        "SKU is required.",
        "Price is required.",
        "Current stock is required.",
        "Minimum stock level is required.",
    ]


def test_duplicate_sku_rejected(client):
    response = client.post("/products/", json=dict(NEW_PRODUCT, sku="OFF-001"))

    assert response.status_code == 400
    assert response.get_json()["errors"] == ["SKU OFF-001 is already in use."]


def test_update_product(client):
    product = Product.query.filter_by(sku="ELE-045").one()

    response = client.put(f"/products/{product.id}", json={"stock": 0})

    assert response.status_code == 200
    assert response.get_json()["status"] == "Out of Stock"
    assert response.get_json()["name"] == "USB Cable Type-C"


def test_delete_flow(client):
    cable = Product.query.filter_by(sku="ELE-045").one()
    paper = Product.query.filter_by(sku="OFF-001").one()

    assert client.delete(f"/products/{cable.id}").status_code == 400
    # stock records still point at the paper
    assert client.delete(f"/products/{paper.id}?confirm=1").status_code == 409

    response = client.delete(f"/products/{cable.id}?confirm=1")
    assert response.status_code == 200
    assert Product.query.filter_by(sku="ELE-045").first() is None


def test_auditor_reads_but_cannot_edit(client):
    client.post("/auth/login", json={"email": "auditor@inventorypro.com", "password": "demo123"})

    assert client.get("/products/").status_code == 200
    assert client.post("/products/", json=NEW_PRODUCT).status_code == 403


def test_unknown_product_returns_404(client):
    response = client.get("/products/999")

    assert response.status_code == 404
    assert response.get_json() == {"error": "Product 999 not found."}
