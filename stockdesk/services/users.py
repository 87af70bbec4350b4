from __future__ import annotations

import logging

from flask import current_app

from stockdesk.exceptions import ConflictError
from stockdesk.models import Roles, User
from stockdesk.permissions import SessionContext
from stockdesk.services.common import require_confirmation
from stockdesk.store import RecordStore
from stockdesk.utils.parsing import PayloadReader

logger = logging.getLogger(__name__)

users: RecordStore[User] = RecordStore(User, label="User", order_by=User.name)


def _is_superuser_account(user: User) -> bool:
    superuser_email = (current_app.config.get("ADMIN_EMAIL") or "").lower()
    return bool(superuser_email) and user.email.lower() == superuser_email


def _ensure_unique_email(reader: PayloadReader, email: str | None, *, exclude_id=None) -> None:
    if not email:
        return
    query = User.query.filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first() is not None:
        reader.errors.append(f"{email} is already registered.")


def create_user(payload: dict, context: SessionContext) -> User:
    reader = PayloadReader(payload)
    name = reader.text("name", "Name", required=True)
    email = reader.text("email", "Email", required=True)
    password = reader.text("password", "Password", required=True)
    role = reader.choice("role", "Role", Roles.ALL, default=Roles.STAFF)
    active = reader.boolean("active", "Active", default=True)
    email = email.lower() if email else email
    _ensure_unique_email(reader, email)
    reader.raise_for_errors()

    user = User(name=name, email=email, role=role or Roles.STAFF, active=active)
    user.set_password(password)
    users.add(user)
    logger.info("User %s (%s) created by %s", user.email, user.role, context.email)
    return user


def update_user(user_id, payload: dict, context: SessionContext) -> User:
    user = users.get(user_id)
    reader = PayloadReader(payload)
    patch: dict = {}
    if reader.has("name"):
        patch["name"] = reader.text("name", "Name", required=True)
    if reader.has("role"):
        patch["role"] = reader.choice("role", "Role", Roles.ALL, required=True)
    if reader.has("active"):
        patch["active"] = reader.boolean("active", "Active")
    password = reader.text("password", "Password") if reader.has("password") else None
    reader.raise_for_errors()

    if _is_superuser_account(user) and (
        patch.get("role", Roles.ADMINISTRATOR) != Roles.ADMINISTRATOR
        or patch.get("active", True) is False
    ):
        raise ConflictError("The built-in administrator cannot be demoted or deactivated.")

    if password:
        user.set_password(password)
    users.update(user.id, patch)
    logger.info("User %s updated by %s", user.email, context.email)
    return user


def delete_user(user_id, payload: dict | None, context: SessionContext) -> None:
    user = users.get(user_id)
    require_confirmation(payload, "user")
    if _is_superuser_account(user):
        raise ConflictError("The built-in administrator cannot be deleted.")
    if context.email and user.email.lower() == context.email.lower():
        raise ConflictError("You cannot delete your own account.")
    email = user.email
    users.delete(user.id)
    logger.info("User %s deleted by %s", email, context.email)
