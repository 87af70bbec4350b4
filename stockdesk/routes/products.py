from flask import Blueprint, jsonify, request

from stockdesk.auth import blueprint_page_guard
from stockdesk.permissions import current_session
from stockdesk.security import require_action
from stockdesk.services import catalog
from stockdesk.utils.parsing import request_payload

bp = Blueprint("products", __name__, url_prefix="/products")

bp.before_request(blueprint_page_guard("products"))


@bp.get("/")
def list_products():
    records = catalog.list_products(request.args.get("q"), request.args.get("category"))
    return jsonify(
        {
            "products": [product.to_dict() for product in records],
            "categories": catalog.list_categories(),
        }
    )


@bp.get("/categories")
def categories():
    return jsonify({"categories": catalog.list_categories()})


@bp.get("/<int:product_id>")
def get_product(product_id: int):
    return jsonify(catalog.products.get(product_id).to_dict())


@bp.post("/")
@require_action("products.edit")
def create_product():
    product = catalog.create_product(request_payload(), current_session())
    return jsonify(product.to_dict()), 201


@bp.route("/<int:product_id>", methods=["PUT", "PATCH"])
@require_action("products.edit")
def update_product(product_id: int):
    product = catalog.update_product(product_id, request_payload(), current_session())
    return jsonify(product.to_dict())


@bp.delete("/<int:product_id>")
@require_action("products.edit")
def delete_product(product_id: int):
    catalog.delete_product(product_id, request_payload(include_args=True), current_session())
    return jsonify({"deleted": product_id})
