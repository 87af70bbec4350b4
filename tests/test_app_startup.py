import logging
import os
import runpy
import sys
from logging.handlers import RotatingFileHandler

import pytest
from flask import g

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import ActivityEvent, Product, PurchaseOrder, User
from stockdesk.seed import seed_demo_data
from stockdesk.utils.logging import configure_logging


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


def test_empty_store_still_has_superuser(app):
    assert Product.query.count() == 0
    assert [user.email for user in User.query.all()] == ["admin@inventorypro.com"]


def test_seed_runs_once(app):
    assert seed_demo_data() is True
    assert seed_demo_data() is False

    assert Product.query.count() == 3
    assert PurchaseOrder.query.count() == 1
    assert ActivityEvent.query.count() == 4


def test_custom_superuser_from_config():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SEED_DEMO_DATA": False,
            "ADMIN_NAME": "Ops Lead",
            "ADMIN_EMAIL": "Ops@Example.com",
            "ADMIN_PASSWORD": "changeme",
        }
    )
    with app.app_context():
        user = User.query.one()
        assert user.email == "ops@example.com"
        assert user.name == "Ops Lead"
        assert user.check_password("changeme")

        client = app.test_client()
        response = client.post("/auth/login", json={"email": "ops@example.com", "password": "changeme"})
        assert response.status_code == 200
        # the configured superuser passes every page check
        assert client.get("/users/").status_code == 200
        db.session.remove()
        db.drop_all()


def test_request_id_assigned(app):
    client = app.test_client()

    with client:
        client.get("/auth/me")
        assert len(g.request_id) == 12


def test_gunicorn_serves_one_request_at_a_time(monkeypatch):
    monkeypatch.delenv("GUNICORN_WORKERS", raising=False)
    monkeypatch.delenv("GUNICORN_THREADS", raising=False)

    settings = runpy.run_path(
        os.path.join(os.path.dirname(__file__), "..", "gunicorn.conf.py")
    )

    assert settings["workers"] == 1
    assert settings["threads"] == 1


def test_logging_stamps_request_ids(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "LOG_DIR": str(tmp_path),
            "LOG_LEVEL": "DEBUG",
        }
    )
    service_logger = logging.getLogger("stockdesk")
    try:
        log_path = configure_logging(app)
        configure_logging(app)

        file_handlers = [h for h in service_logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert service_logger.level == logging.DEBUG

        with app.test_request_context("/"):
            g.request_id = "abc123"
            logging.getLogger("stockdesk.services.sales").info("Sales order reserved")
        for handler in service_logger.handlers:
            handler.flush()

        assert "[req=abc123] stockdesk.services.sales: Sales order reserved" in log_path.read_text()
    finally:
        for handler in list(service_logger.handlers):
            service_logger.removeHandler(handler)
            handler.close()
        service_logger.setLevel(logging.NOTSET)
