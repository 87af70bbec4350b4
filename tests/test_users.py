import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockdesk import create_app
from stockdesk.extensions import db
from stockdesk.models import Roles, User


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


def _user(email):
    return User.query.filter_by(email=email).one()


def test_list_users(client):
    payload = client.get("/users/").get_json()

    assert len(payload["users"]) == 4
    assert payload["roles"] == ["Administrator", "Manager", "Staff", "Auditor"]


def test_create_user_and_login(client):
    response = client.post(
        "/users/",
        json={"name": "Nina Clerk", "email": "Nina@Example.com", "password": "pw123", "role": "Staff"},
    )

    assert response.status_code == 201
    assert response.get_json()["email"] == "nina@example.com"

    client.post("/auth/logout")
    login = client.post("/auth/login", json={"email": "nina@example.com", "password": "pw123"})
    assert login.get_json()["user"]["role"] == Roles.STAFF


def test_duplicate_email_and_bad_role(client):
    duplicate = client.post(
        "/users/",
        json={"name": "Copy", "email": "manager@inventorypro.com", "password": "x"},
    )
    bad_role = client.post(
        "/users/",
        json={"name": "Root", "email": "root@example.com", "password": "x", "role": "Owner"},
    )

    assert duplicate.status_code == 400
    assert duplicate.get_json()["errors"] == ["manager@inventorypro.com is already registered."]
    assert bad_role.status_code == 400


def test_change_role_and_deactivate(client):
    staff = _user("staff@inventorypro.com")

    response = client.patch(f"/users/{staff.id}", json={"role": "Manager", "active": False})

    assert response.status_code == 200
    assert response.get_json()["role"] == "Manager"
    assert response.get_json()["active"] is False

    client.post("/auth/logout")
    assert (
        client.post("/auth/login", json={"email": "staff@inventorypro.com", "password": "demo123"}).status_code
        == 401
    )


def test_superuser_cannot_be_demoted(client):
    admin = _user("admin@inventorypro.com")

    response = client.patch(f"/users/{admin.id}", json={"role": "Staff"})

    assert response.status_code == 409
    assert _user("admin@inventorypro.com").role == Roles.ADMINISTRATOR


def test_delete_user(client):
    auditor = _user("auditor@inventorypro.com")
    admin = _user("admin@inventorypro.com")

    assert client.delete(f"/users/{auditor.id}").status_code == 400
    assert client.delete(f"/users/{admin.id}?confirm=true").status_code == 409
    assert client.delete(f"/users/{auditor.id}?confirm=true").status_code == 200
    assert User.query.filter_by(email="auditor@inventorypro.com").first() is None


def test_administrator_cannot_delete_self(client):
    second = User(name="Second Admin", email="second@example.com", role=Roles.ADMINISTRATOR)
    second.set_password("pw")
    db.session.add(second)
    db.session.commit()
    client.post("/auth/login", json={"email": "second@example.com", "password": "pw"})

    response = client.delete(f"/users/{second.id}?confirm=true")

    assert response.status_code == 409
    assert response.get_json() == {"error": "You cannot delete your own account."}


def test_manager_cannot_manage_users(client):
    client.post("/auth/login", json={"email": "manager@inventorypro.com", "password": "demo123"})

    assert client.get("/users/").status_code == 403
