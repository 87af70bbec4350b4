from flask import Blueprint, jsonify, request

from stockdesk.auth import blueprint_page_guard
from stockdesk.permissions import current_session
from stockdesk.security import require_action
from stockdesk.services import warehouses as service
from stockdesk.utils.parsing import request_payload

bp = Blueprint("warehouses", __name__, url_prefix="/warehouses")

bp.before_request(blueprint_page_guard("warehouses"))


@bp.get("/")
def list_warehouses():
    return jsonify(
        {"warehouses": [service.warehouse_summary(warehouse) for warehouse in service.warehouses.all()]}
    )


@bp.get("/<int:warehouse_id>")
def get_warehouse(warehouse_id: int):
    warehouse = service.warehouses.get(warehouse_id)
    payload = service.warehouse_summary(warehouse)
    payload["locations"] = [location.to_dict() for location in warehouse.locations]
    return jsonify(payload)


@bp.post("/")
@require_action("warehouses.manage")
def create_warehouse():
    warehouse = service.create_warehouse(request_payload(), current_session())
    return jsonify(service.warehouse_summary(warehouse)), 201


@bp.route("/<int:warehouse_id>", methods=["PUT", "PATCH"])
@require_action("warehouses.manage")
def update_warehouse(warehouse_id: int):
    warehouse = service.update_warehouse(warehouse_id, request_payload(), current_session())
    return jsonify(service.warehouse_summary(warehouse))


@bp.delete("/<int:warehouse_id>")
@require_action("warehouses.manage")
def delete_warehouse(warehouse_id: int):
    service.delete_warehouse(warehouse_id, request_payload(include_args=True), current_session())
    return jsonify({"deleted": warehouse_id})


@bp.get("/<int:warehouse_id>/locations")
def list_locations(warehouse_id: int):
    return jsonify(
        {"locations": [location.to_dict() for location in service.list_locations(warehouse_id)]}
    )


@bp.post("/<int:warehouse_id>/locations")
@require_action("warehouses.manage")
def create_location(warehouse_id: int):
    location = service.create_location(warehouse_id, request_payload(), current_session())
    return jsonify(location.to_dict()), 201


@bp.route("/<int:warehouse_id>/locations/<int:location_id>", methods=["PUT", "PATCH"])
@require_action("warehouses.manage")
def update_location(warehouse_id: int, location_id: int):
    location = service.update_location(
        warehouse_id, location_id, request_payload(), current_session()
    )
    return jsonify(location.to_dict())


@bp.delete("/<int:warehouse_id>/locations/<int:location_id>")
@require_action("warehouses.manage")
def delete_location(warehouse_id: int, location_id: int):
    service.delete_location(
        warehouse_id, location_id, request_payload(include_args=True), current_session()
    )
    return jsonify({"deleted": location_id})


@bp.get("/transfers")
def list_transfers():
    records = service.list_transfers(request.args.get("status"))
    return jsonify({"transfers": [transfer.to_dict() for transfer in records]})


@bp.post("/transfers")
@require_action("transfers.manage")
def create_transfer():
    transfer = service.create_transfer(request_payload(), current_session())
    return jsonify(transfer.to_dict()), 201


@bp.post("/transfers/<int:transfer_id>/status")
@require_action("transfers.manage")
def update_transfer_status(transfer_id: int):
    status = request_payload().get("status")
    transfer = service.update_transfer_status(transfer_id, status, current_session())
    return jsonify(transfer.to_dict())
