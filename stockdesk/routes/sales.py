from flask import Blueprint, jsonify, request

from stockdesk.auth import blueprint_page_guard
from stockdesk.permissions import current_session
from stockdesk.security import require_action
from stockdesk.services import sales
from stockdesk.utils.parsing import request_payload

bp = Blueprint("sales", __name__, url_prefix="/sales")

bp.before_request(blueprint_page_guard("sales"))

_LIFECYCLE_ACTIONS = {
    "confirm": sales.confirm_sales_order,
    "reserve": sales.reserve_sales_order,
    "dispatch": sales.dispatch_sales_order,
    "deliver": sales.deliver_sales_order,
    "cancel": sales.cancel_sales_order,
}


@bp.get("/")
def list_sales_orders():
    orders = sales.list_sales_orders(request.args.get("q"))
    return jsonify(
        {
            "sales_orders": [order.to_dict() for order in orders],
            "stats": sales.sales_order_stats(sales.sales_orders.all()),
            "currencies": list(sales.CURRENCIES),
        }
    )


@bp.get("/<int:order_id>")
def get_sales_order(order_id: int):
    return jsonify(sales.sales_orders.get(order_id).to_dict())


@bp.post("/")
@require_action("sales.create")
def create_sales_order():
    order = sales.create_sales_order(request_payload(), current_session())
    return jsonify(order.to_dict()), 201


@bp.route("/<int:order_id>", methods=["PUT", "PATCH"])
@require_action("sales.create")
def update_sales_order(order_id: int):
    order = sales.update_sales_order(order_id, request_payload(), current_session())
    return jsonify(order.to_dict())


@bp.post("/<int:order_id>/<any(confirm, reserve, dispatch, deliver, cancel):action>")
@require_action("sales.lifecycle")
def advance_sales_order(order_id: int, action: str):
    order = _LIFECYCLE_ACTIONS[action](order_id, current_session())
    return jsonify(order.to_dict())


@bp.get("/<int:order_id>/invoice")
def invoice(order_id: int):
    return jsonify(sales.build_invoice(sales.sales_orders.get(order_id)))
