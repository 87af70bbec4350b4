from flask import Blueprint, jsonify, request

from stockdesk.auth import blueprint_page_guard
from stockdesk.models import OrderPriority, OrderStatus
from stockdesk.permissions import current_session
from stockdesk.security import require_action
from stockdesk.services import orders as service
from stockdesk.utils.parsing import request_payload

bp = Blueprint("orders", __name__, url_prefix="/orders")

bp.before_request(blueprint_page_guard("orders"))


@bp.get("/")
def list_orders():
    records = service.list_orders(request.args.get("q"), request.args.get("status"))
    return jsonify(
        {
            "orders": [order.to_dict() for order in records],
            "stats": service.order_stats(service.orders.all()),
            "statuses": list(OrderStatus.ALL),
            "priorities": list(OrderPriority.ALL),
        }
    )


@bp.get("/<int:order_id>")
def get_order(order_id: int):
    return jsonify(service.orders.get(order_id).to_dict())


@bp.post("/")
@require_action("orders.manage")
def create_order():
    order = service.create_order(request_payload(), current_session())
    return jsonify(order.to_dict()), 201


@bp.route("/<int:order_id>", methods=["PUT", "PATCH"])
@require_action("orders.manage")
def update_order(order_id: int):
    order = service.update_order(order_id, request_payload(), current_session())
    return jsonify(order.to_dict())
