from flask import Blueprint, jsonify

from stockdesk.auth import blueprint_page_guard
from stockdesk.models import Roles
from stockdesk.permissions import current_session
from stockdesk.security import require_admin
from stockdesk.services import users as service
from stockdesk.utils.parsing import request_payload

bp = Blueprint("users", __name__, url_prefix="/users")

bp.before_request(blueprint_page_guard("users"))


@bp.get("/")
def list_users():
    return jsonify(
        {
            "users": [user.to_dict() for user in service.users.all()],
            "roles": list(Roles.ALL),
        }
    )


@bp.get("/<int:user_id>")
def get_user(user_id: int):
    return jsonify(service.users.get(user_id).to_dict())


@bp.post("/")
@require_admin
def create_user():
    user = service.create_user(request_payload(), current_session())
    return jsonify(user.to_dict()), 201


@bp.route("/<int:user_id>", methods=["PUT", "PATCH"])
@require_admin
def update_user(user_id: int):
    user = service.update_user(user_id, request_payload(), current_session())
    return jsonify(user.to_dict())


@bp.delete("/<int:user_id>")
@require_admin
def delete_user(user_id: int):
    service.delete_user(user_id, request_payload(include_args=True), current_session())
    return jsonify({"deleted": user_id})
