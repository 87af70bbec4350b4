import os
import sys

import pytest
from sqlalchemy.exc import ProgrammingError

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


def test_error_handler_rolls_back_session(client, app, monkeypatch):
    from stockdesk.services import analytics

    def _raise_programming_error():
        db.session.add(Product(name="Ghost", sku="GHOST-1", price=1, stock=1, min_stock=0))
        raise ProgrammingError("SELECT 1", {}, Exception("missing column"))

    monkeypatch.setattr(analytics, "analytics_overview", _raise_programming_error)

    response = client.get("/analytics/")

    assert response.status_code == 500
    assert response.get_json() == {
        "error": "Internal Server Error",
        "endpoint": "analytics.overview",
        "path": "/analytics/",
    }
    assert Product.query.filter_by(sku="GHOST-1").first() is None
    assert Product.query.count() == 3


def test_unknown_route_returns_json_404(client):
    response = client.get("/no-such-page")

    assert response.status_code == 404
    assert "error" in response.get_json()


def test_wrong_method_returns_json_405(client):
    response = client.delete("/analytics/")

    assert response.status_code == 405
    assert "error" in response.get_json()


def test_unparseable_values_return_every_error(client):
    response = client.post(
        "/products/",
        json={"name": "Broken", "sku": "BRK-1", "price": "cheap", "stock": "many", "min_stock": 1},
    )

    assert response.status_code == 400
    assert response.get_json()["errors"] == [
        "Enter a valid amount for price.",
        "Enter a whole number for current stock.",
    ]
