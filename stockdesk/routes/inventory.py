"""Read-only stock overview shared by every role."""

from flask import Blueprint, jsonify, request

from stockdesk.auth import blueprint_page_guard
from stockdesk.services import stock_control

bp = Blueprint("inventory", __name__, url_prefix="/inventory")

bp.before_request(blueprint_page_guard("inventory"))


@bp.get("/")
def overview():
    items = stock_control.list_stock_items(request.args.get("q"))
    return jsonify(
        {
            "items": [item.to_dict() for item in items],
            "stats": stock_control.inventory_stats(items),
        }
    )


@bp.get("/low-stock")
def low_stock():
    items = stock_control.list_stock_items()
    return jsonify({"suggestions": stock_control.reorder_suggestions(items)})
