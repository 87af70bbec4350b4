"""Role capability sets for pages and actions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from flask import abort, current_app, request
from flask_login import current_user

from stockdesk.extensions import login_manager
from stockdesk.models import Roles

_EVERYONE = Roles.ALL
_OPERATIONS = (Roles.ADMINISTRATOR, Roles.MANAGER, Roles.STAFF)
_MANAGEMENT = (Roles.ADMINISTRATOR, Roles.MANAGER)
_ADMIN_ONLY = (Roles.ADMINISTRATOR,)

DEFAULT_PAGE_ACCESS: dict[str, dict[str, Sequence[str]]] = {
    "dashboard": {"label": "Dashboard", "roles": _EVERYONE},
    "products": {"label": "Products", "roles": _EVERYONE},
    "inventory": {"label": "Inventory", "roles": _EVERYONE},
    "inventory-control": {"label": "Inventory Control", "roles": _OPERATIONS},
    "warehouses": {"label": "Warehouses", "roles": _OPERATIONS},
    "sales": {"label": "Sales Orders", "roles": _OPERATIONS},
    "orders": {"label": "Orders", "roles": _OPERATIONS},
    "procurement": {"label": "Procurement", "roles": _MANAGEMENT},
    "vendors": {"label": "Vendors & Customers", "roles": _MANAGEMENT},
    "settings": {"label": "Settings", "roles": _MANAGEMENT},
    "analytics": {
        "label": "Analytics",
        "roles": (Roles.ADMINISTRATOR, Roles.MANAGER, Roles.AUDITOR),
    },
    "users": {"label": "Users", "roles": _ADMIN_ONLY},
}

ACTION_ACCESS: dict[str, Sequence[str]] = {
    "stock.adjust": _MANAGEMENT,
    "stock.batches": _MANAGEMENT,
    "products.edit": _MANAGEMENT,
    "procurement.create": _MANAGEMENT,
    "procurement.approve": _MANAGEMENT,
    "procurement.receive": _MANAGEMENT,
    "partners.manage": _MANAGEMENT,
    "warehouses.manage": _MANAGEMENT,
    "sales.create": _OPERATIONS,
    "sales.lifecycle": _OPERATIONS,
    "transfers.manage": _OPERATIONS,
    "orders.manage": _OPERATIONS,
    "settings.change": _ADMIN_ONLY,
    "settings.export": _ADMIN_ONLY,
    "users.manage": _ADMIN_ONLY,
}


def resolve_page_roles(page_name: str) -> tuple[str, ...]:
    page = DEFAULT_PAGE_ACCESS.get(page_name)
    if page is None:
        return _ADMIN_ONLY
    return tuple(page["roles"])


def resolve_action_roles(action: str) -> tuple[str, ...]:
    return tuple(ACTION_ACCESS.get(action, _ADMIN_ONLY))


@dataclass(frozen=True)
class SessionContext:
    """The acting user as seen by services that attribute or gate work."""

    name: str
    email: str
    role: str
    is_superuser: bool = False

    def can_view(self, page_name: str) -> bool:
        return self.is_superuser or self.role in resolve_page_roles(page_name)

    def can(self, action: str) -> bool:
        return self.is_superuser or self.role in resolve_action_roles(action)

    def to_dict(self) -> dict:
        return {"name": self.name, "email": self.email, "role": self.role}


def session_for(user) -> SessionContext:
    superuser_email = (current_app.config.get("ADMIN_EMAIL") or "").lower()
    return SessionContext(
        name=user.name,
        email=user.email,
        role=user.role,
        is_superuser=bool(superuser_email) and user.email.lower() == superuser_email,
    )


def current_session() -> SessionContext | None:
    if not current_user.is_authenticated:
        return None
    return session_for(current_user)


def ensure_page_access(page_name: str):
    """Abort if the current user is not allowed to access the page."""

    endpoint = request.endpoint or ""
    if endpoint.endswith(".static"):
        return None

    context = current_session()
    if context is None:
        return login_manager.unauthorized()

    if context.can_view(page_name):
        return None

    abort(403)


def get_known_pages(context: SessionContext | None = None) -> list[dict[str, str]]:
    """Page names and labels in menu order, limited to what ``context`` may view."""

    return [
        {"page_name": name, "label": config["label"]}
        for name, config in DEFAULT_PAGE_ACCESS.items()
        if context is None or context.can_view(name)
    ]
