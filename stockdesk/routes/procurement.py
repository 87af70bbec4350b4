from flask import Blueprint, jsonify, request

from stockdesk.auth import blueprint_page_guard
from stockdesk.permissions import current_session
from stockdesk.security import require_action
from stockdesk.services import procurement
from stockdesk.utils.parsing import request_payload

bp = Blueprint("procurement", __name__, url_prefix="/procurement")

bp.before_request(blueprint_page_guard("procurement"))


@bp.get("/")
def list_purchase_orders():
    orders = procurement.list_purchase_orders(request.args.get("q"))
    return jsonify(
        {
            "purchase_orders": [po.to_dict() for po in orders],
            "stats": procurement.purchase_order_stats(procurement.purchase_orders.all()),
        }
    )


@bp.get("/<int:po_id>")
def get_purchase_order(po_id: int):
    po = procurement.purchase_orders.get(po_id)
    payload = po.to_dict()
    payload["receipts"] = [receipt.to_dict() for receipt in po.receipts]
    return jsonify(payload)


@bp.post("/")
@require_action("procurement.create")
def create_purchase_order():
    po = procurement.create_purchase_order(request_payload(), current_session())
    return jsonify(po.to_dict()), 201


@bp.route("/<int:po_id>", methods=["PUT", "PATCH"])
@require_action("procurement.create")
def update_purchase_order(po_id: int):
    po = procurement.update_purchase_order(po_id, request_payload(), current_session())
    return jsonify(po.to_dict())


@bp.post("/<int:po_id>/submit")
@require_action("procurement.create")
def submit_purchase_order(po_id: int):
    return jsonify(procurement.submit_purchase_order(po_id, current_session()).to_dict())


@bp.post("/<int:po_id>/approve")
@require_action("procurement.approve")
def approve_purchase_order(po_id: int):
    return jsonify(procurement.approve_purchase_order(po_id, current_session()).to_dict())


@bp.post("/<int:po_id>/cancel")
@require_action("procurement.approve")
def cancel_purchase_order(po_id: int):
    return jsonify(procurement.cancel_purchase_order(po_id, current_session()).to_dict())


@bp.get("/<int:po_id>/receive")
def receipt_form(po_id: int):
    """Prefill for the goods receipt dialog: every line fully received."""

    po = procurement.purchase_orders.get(po_id)
    return jsonify(
        {
            "po_number": po.po_number,
            "vendor_name": po.vendor_name,
            "lines": procurement.default_receipt_lines(po),
        }
    )


@bp.post("/<int:po_id>/receive")
@require_action("procurement.receive")
def receive_purchase_order(po_id: int):
    receipt = procurement.receive_purchase_order(po_id, request_payload(), current_session())
    return (
        jsonify(
            {
                "receipt": receipt.to_dict(),
                "purchase_order": receipt.purchase_order.to_dict(),
            }
        ),
        201,
    )


@bp.get("/<int:po_id>/receipts")
def list_receipts(po_id: int):
    po = procurement.purchase_orders.get(po_id)
    return jsonify({"receipts": [receipt.to_dict() for receipt in po.receipts]})
