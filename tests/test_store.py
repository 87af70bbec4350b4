import os
import sys
from decimal import Decimal

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import Product
from stockdesk.store import RecordNotFound, RecordStore


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SEED_DEMO_DATA": False,
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def store(app):
    return RecordStore(Product, label="Product", order_by=Product.name)


def _product(name, sku):
    return Product(name=name, sku=sku, category="Test", price=Decimal("1.50"), stock=5, min_stock=1)


def test_add_assigns_id_and_all_orders(store):
    store.add(_product("Zeta", "Z-1"))
    store.add(_product("Alpha", "A-1"))

    assert [product.name for product in store.all()] == ["Alpha", "Zeta"]
    assert store.count() == 2
    assert all(product.id for product in store.all())


def test_get_unknown_id_raises(store):
    with pytest.raises(RecordNotFound) as excinfo:
        store.get(42)

    assert str(excinfo.value) == "Product 42 not found."
    assert store.find("not-a-number") is None


def test_update_patches_fields(store):
    product = store.add(_product("Alpha", "A-1"))

    store.update(product.id, {"stock": 0, "name": "Alpha Prime"})

    refreshed = db.session.get(Product, product.id)
    assert refreshed.stock == 0
    assert refreshed.name == "Alpha Prime"
    assert refreshed.status == "Out of Stock"


def test_update_rejects_unknown_fields(store):
    product = store.add(_product("Alpha", "A-1"))

    with pytest.raises(AttributeError):
        store.update(product.id, {"colour": "red"})


def test_delete_removes_record(store):
    product = store.add(_product("Alpha", "A-1"))

    store.delete(product.id)

    assert store.find(product.id) is None
    with pytest.raises(RecordNotFound):
        store.delete(product.id)
