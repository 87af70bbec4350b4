from __future__ import annotations

import logging
from datetime import datetime

from stockdesk.activity import record_activity
from stockdesk.exceptions import RecordNotFound, TransferClosed
from stockdesk.extensions import db
from stockdesk.models import ActivityEvent, Location, Product, StockTransfer, TransferStatus, Warehouse
from stockdesk.permissions import SessionContext
from stockdesk.services.common import apply_transition, require_confirmation
from stockdesk.store import RecordStore
from stockdesk.utils.parsing import PayloadReader

logger = logging.getLogger(__name__)

warehouses: RecordStore[Warehouse] = RecordStore(Warehouse, label="Warehouse")
locations: RecordStore[Location] = RecordStore(Location, label="Location")
transfers: RecordStore[StockTransfer] = RecordStore(
    StockTransfer, label="Transfer", order_by=StockTransfer.requested_at.desc()
)


def warehouse_capacity(warehouse: Warehouse) -> float:
    """Average utilization of the warehouse's locations, in percent."""

    if not warehouse.locations:
        return 0.0
    return sum(location.utilization for location in warehouse.locations) / len(warehouse.locations)


def warehouse_summary(warehouse: Warehouse) -> dict:
    payload = warehouse.to_dict()
    payload["capacity"] = round(warehouse_capacity(warehouse), 1)
    return payload


def _read_coordinates(reader: PayloadReader, keys: tuple[str, ...]):
    if not reader.has("coordinates"):
        return None
    raw = reader.payload.get("coordinates")
    if raw is None:
        return None
    if not isinstance(raw, dict):
        reader.errors.append("Coordinates must be an object.")
        return None
    coordinates = {}
    for key in keys:
        value = raw.get(key, 0)
        try:
            coordinates[key] = float(value or 0)
        except (TypeError, ValueError):
            reader.errors.append(f"Coordinate {key} must be a number.")
    return coordinates


def _read_warehouse(reader: PayloadReader, *, partial: bool) -> dict:
    values: dict = {}
    if not partial or reader.has("name"):
        values["name"] = reader.text("name", "Warehouse name", required=True)
    if not partial or reader.has("address"):
        values["address"] = reader.text("address", "Address", required=True)
    if not partial or reader.has("staff"):
        values["staff"] = reader.integer("staff", "Staff", default=0)
    if not partial or reader.has("items"):
        values["items"] = reader.integer("items", "Items", default=0)
    if reader.has("coordinates"):
        values["coordinates"] = _read_coordinates(reader, ("lat", "lng"))
    return values


def _ensure_unique_name(reader: PayloadReader, name: str | None, *, exclude_id=None) -> None:
    if not name:
        return
    query = Warehouse.query.filter(Warehouse.name == name)
    if exclude_id is not None:
        query = query.filter(Warehouse.id != exclude_id)
    if query.first() is not None:
        reader.errors.append(f"A warehouse named {name} already exists.")


def create_warehouse(payload: dict, context: SessionContext) -> Warehouse:
    reader = PayloadReader(payload)
    values = _read_warehouse(reader, partial=False)
    _ensure_unique_name(reader, values.get("name"))
    reader.raise_for_errors()
    warehouse = warehouses.add(Warehouse(**values))
    logger.info("Warehouse %s added by %s", warehouse.name, context.name)
    return warehouse


def update_warehouse(warehouse_id, payload: dict, context: SessionContext) -> Warehouse:
    warehouse = warehouses.get(warehouse_id)
    reader = PayloadReader(payload)
    values = _read_warehouse(reader, partial=True)
    _ensure_unique_name(reader, values.get("name"), exclude_id=warehouse.id)
    reader.raise_for_errors()
    return warehouses.update(warehouse.id, values)


def delete_warehouse(warehouse_id, payload: dict | None, context: SessionContext) -> None:
    """Remove a warehouse together with its locations."""

    warehouse = warehouses.get(warehouse_id)
    require_confirmation(payload, "warehouse")
    name = warehouse.name
    warehouses.delete(warehouse.id)
    logger.info("Warehouse %s deleted by %s", name, context.name)


def _read_location(reader: PayloadReader, *, partial: bool) -> dict:
    values: dict = {}
    for field, label in (("rack", "Rack"), ("shelf", "Shelf"), ("bin", "Bin")):
        if not partial or reader.has(field):
            values[field] = reader.text(field, label, required=True)
    if not partial or reader.has("capacity"):
        values["capacity"] = reader.integer("capacity", "Capacity", required=True)
    if not partial or reader.has("occupied"):
        values["occupied"] = reader.integer("occupied", "Occupied", default=0)
    if reader.has("products"):
        products = reader.payload.get("products")
        if not isinstance(products, list):
            reader.errors.append("Products must be a list of SKUs.")
        else:
            values["products"] = [str(sku) for sku in products]
    if reader.has("coordinates"):
        values["coordinates"] = _read_coordinates(reader, ("x", "y", "z"))
    return values


def list_locations(warehouse_id) -> list[Location]:
    return warehouses.get(warehouse_id).locations


def create_location(warehouse_id, payload: dict, context: SessionContext) -> Location:
    warehouse = warehouses.get(warehouse_id)
    reader = PayloadReader(payload)
    values = _read_location(reader, partial=False)
    reader.raise_for_errors()
    values.setdefault("products", [])
    values.setdefault("coordinates", {"x": 0.0, "y": 0.0, "z": 0.0})
    location = Location(warehouse_id=warehouse.id, **values)
    locations.add(location)
    logger.info("Location %s added to %s by %s", location.code, warehouse.name, context.name)
    return location


def _location_in(warehouse_id, location_id) -> Location:
    location = locations.get(location_id)
    if location.warehouse_id != warehouses.get(warehouse_id).id:
        raise RecordNotFound("Location", location_id)
    return location


def update_location(warehouse_id, location_id, payload: dict, context: SessionContext) -> Location:
    location = _location_in(warehouse_id, location_id)
    reader = PayloadReader(payload)
    values = _read_location(reader, partial=True)
    reader.raise_for_errors()
    return locations.update(location.id, values)


def delete_location(warehouse_id, location_id, payload: dict | None, context: SessionContext) -> None:
    location = _location_in(warehouse_id, location_id)
    require_confirmation(payload, "location")
    code = location.code
    locations.delete(location.id)
    logger.info("Location %s deleted by %s", code, context.name)


def list_transfers(status: str | None = None) -> list[StockTransfer]:
    query = transfers.query()
    if status and status != "all":
        query = query.filter(StockTransfer.status == status)
    return query.all()


def create_transfer(payload: dict, context: SessionContext) -> StockTransfer:
    reader = PayloadReader(payload)
    product_sku = reader.text("product_sku", "Product SKU", required=True)
    quantity = reader.integer("quantity", "Quantity", required=True, minimum=1)
    from_warehouse = reader.text("from_warehouse", "From warehouse", required=True)
    to_warehouse = reader.text("to_warehouse", "To warehouse", required=True)
    from_location = reader.text("from_location", "From location")
    to_location = reader.text("to_location", "To location")
    notes = reader.text("notes", "Notes")

    product = Product.query.filter_by(sku=product_sku).first() if product_sku else None
    product_name = reader.text(
        "product_name", "Product name", default=product.name if product else None
    ) or (product.name if product else "")
    reader.raise_for_errors()

    transfer = StockTransfer(
        product_sku=product_sku,
        product_name=product_name,
        quantity=quantity,
        from_warehouse=from_warehouse,
        to_warehouse=to_warehouse,
        from_location=from_location,
        to_location=to_location,
        status=TransferStatus.PENDING,
        requested_by=context.name,
        requested_at=datetime.utcnow(),
        notes=notes,
    )
    record_activity(
        ActivityEvent.SHIPMENT,
        f"Stock transfer for {product_name or product_sku} initiated",
        user_name=context.name,
    )
    return transfers.add(transfer)


def update_transfer_status(transfer_id, status: str | None, context: SessionContext) -> StockTransfer:
    """Advance a transfer; completed and cancelled transfers never change again."""

    transfer = transfers.get(transfer_id)
    reader = PayloadReader({"status": status})
    target = reader.choice("status", "Status", TransferStatus.ALL, required=True)
    reader.raise_for_errors()

    if transfer.status in TransferStatus.CLOSED:
        raise TransferClosed(transfer.status)

    previous = apply_transition(transfer, target, TransferStatus.TRANSITIONS, label="Transfer")
    if target == TransferStatus.COMPLETED:
        transfer.completed_at = datetime.utcnow()
    record_activity(
        ActivityEvent.SHIPMENT,
        f"Transfer of {transfer.product_name or transfer.product_sku} marked {target}",
        user_name=context.name,
    )
    db.session.commit()
    logger.info("Transfer %s %s -> %s by %s", transfer.id, previous, target, context.name)
    return transfer
