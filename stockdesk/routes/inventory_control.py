from flask import Blueprint, jsonify, request

from stockdesk.auth import blueprint_page_guard
from stockdesk.exceptions import ValidationError
from stockdesk.permissions import current_session
from stockdesk.security import require_action
from stockdesk.services import stock_control
from stockdesk.utils.parsing import request_payload

bp = Blueprint("inventory_control", __name__, url_prefix="/inventory-control")

bp.before_request(blueprint_page_guard("inventory-control"))


@bp.get("/")
def list_items():
    items = stock_control.list_stock_items(request.args.get("q"))
    return jsonify(
        {
            "items": [item.to_dict() for item in items],
            "stats": stock_control.inventory_stats(items),
        }
    )


@bp.get("/items/<int:item_id>")
def get_item(item_id: int):
    return jsonify(stock_control.stock_items.get(item_id).to_dict())


@bp.post("/items")
@require_action("stock.adjust")
def create_item():
    item = stock_control.create_stock_item(request_payload(), current_session())
    return jsonify(item.to_dict()), 201


@bp.post("/items/<int:item_id>/adjust")
@require_action("stock.adjust")
def adjust_item(item_id: int):
    result = stock_control.adjust_stock(item_id, request_payload(), current_session())
    return jsonify(result)


@bp.put("/items/<int:item_id>/batches")
@require_action("stock.batches")
def save_batches(item_id: int):
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        payload = payload.get("batches")
    if payload is None:
        raise ValidationError(["Batches are required."])
    item = stock_control.save_batches(item_id, payload, current_session())
    return jsonify(item.to_dict())


@bp.get("/low-stock")
def low_stock():
    items = stock_control.low_stock(stock_control.list_stock_items())
    return jsonify({"items": [item.to_dict() for item in items]})


@bp.get("/expiring")
def expiring():
    horizon = request.args.get("days", type=int)
    items = stock_control.expiring_soon(stock_control.list_stock_items(), horizon_days=horizon)
    return jsonify({"items": [item.to_dict() for item in items]})
