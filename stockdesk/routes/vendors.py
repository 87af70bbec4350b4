"""Vendor (supplier) and customer records share one page and one set of routes."""

from flask import Blueprint, abort, jsonify, request

from stockdesk.auth import blueprint_page_guard
from stockdesk.models import Customer, Vendor
from stockdesk.permissions import current_session
from stockdesk.security import require_action
from stockdesk.services import partners
from stockdesk.utils.parsing import request_payload

bp = Blueprint("vendors", __name__, url_prefix="/vendors")

bp.before_request(blueprint_page_guard("vendors"))

_KINDS = {"suppliers": Vendor, "customers": Customer}


def _model_for(kind: str):
    model = _KINDS.get(kind)
    if model is None:
        abort(404)
    return model


@bp.get("/")
def overview():
    search = request.args.get("q")
    vendor_list = partners.search_parties(Vendor, search)
    customer_list = partners.search_parties(Customer, search)
    return jsonify(
        {
            "vendors": [vendor.to_dict() for vendor in vendor_list],
            "customers": [customer.to_dict() for customer in customer_list],
            "stats": partners.partner_stats(partners.vendors.all(), partners.customers.all()),
        }
    )


@bp.get("/<kind>")
def list_parties(kind: str):
    model = _model_for(kind)
    records = partners.search_parties(model, request.args.get("q"))
    return jsonify({kind: [record.to_dict() for record in records]})


@bp.get("/<kind>/<int:record_id>")
def get_party(kind: str, record_id: int):
    model = _model_for(kind)
    return jsonify(partners.store_for(model).get(record_id).to_dict())


@bp.post("/<kind>")
@require_action("partners.manage")
def create_party(kind: str):
    record = partners.create_party(_model_for(kind), request_payload(), current_session())
    return jsonify(record.to_dict()), 201


@bp.route("/<kind>/<int:record_id>", methods=["PUT", "PATCH"])
@require_action("partners.manage")
def update_party(kind: str, record_id: int):
    record = partners.update_party(
        _model_for(kind), record_id, request_payload(), current_session()
    )
    return jsonify(record.to_dict())


@bp.post("/<kind>/<int:record_id>/status")
@require_action("partners.manage")
def set_status(kind: str, record_id: int):
    record = partners.set_party_status(
        _model_for(kind), record_id, request_payload().get("status"), current_session()
    )
    return jsonify(record.to_dict())
