from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required, login_user, logout_user

from stockdesk.extensions import db
from stockdesk.models import User
from stockdesk.permissions import current_session, get_known_pages, session_for
from stockdesk.utils.parsing import PayloadReader, request_payload

bp = Blueprint("auth", __name__, url_prefix="/auth")


@bp.post("/login")
def login():
    reader = PayloadReader(request_payload())
    email = reader.text("email", "Email", required=True)
    password = reader.text("password", "Password", required=True)
    reader.raise_for_errors()

    user = User.query.filter_by(email=email.lower()).first()
    if user is None or not user.check_password(password):
        current_app.logger.info("Failed login for %s", email)
        return jsonify({"error": "Invalid credentials"}), 401
    if not user.is_active:
        current_app.logger.info("Login refused for inactive account %s", email)
        return jsonify({"error": "This account is disabled."}), 401

    login_user(user)
    current_app.logger.info("User %s logged in", user.email)
    return jsonify({"user": session_for(user).to_dict()})


@bp.get("/me")
def me():
    context = current_session()
    return jsonify(context.to_dict() if context is not None else None)


@bp.get("/navigation")
@login_required
def navigation():
    context = current_session()
    menu = get_known_pages(context)
    return jsonify({"pages": [page["page_name"] for page in menu], "menu": menu})


@bp.post("/logout")
def logout():
    context = current_session()
    logout_user()
    if context is not None:
        current_app.logger.info("User %s logged out", context.email)
    return jsonify({"ok": True})


@bp.post("/reset-password")
@login_required
def reset_password():
    reader = PayloadReader(request_payload())
    old = reader.text("old_password", "Current password", required=True)
    new = reader.text("new_password", "New password", required=True)
    reader.raise_for_errors()

    if not current_user.check_password(old):
        return jsonify({"error": "Invalid current password"}), 400
    current_user.set_password(new)
    db.session.commit()
    return jsonify({"ok": True})
