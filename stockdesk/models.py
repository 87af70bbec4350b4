from datetime import date, datetime
from decimal import Decimal

from flask_login import UserMixin
from sqlalchemy.orm import declared_attr
from werkzeug.security import check_password_hash, generate_password_hash

from stockdesk import derived
from stockdesk.extensions import db


def _iso(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _amount(value) -> float:
    return float(derived.money(value))


class Roles:
    ADMINISTRATOR = "Administrator"
    MANAGER = "Manager"
    STAFF = "Staff"
    AUDITOR = "Auditor"

    ALL = (ADMINISTRATOR, MANAGER, STAFF, AUDITOR)


class User(UserMixin, db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    role = db.Column(db.String(32), nullable=False, default=Roles.STAFF)
    password_hash = db.Column(db.String(255), nullable=False)
    active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    @property
    def is_active(self) -> bool:
        return bool(self.active)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def has_any_role(self, role_names) -> bool:
        if not role_names:
            return False
        return self.role in set(role_names)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "active": bool(self.active),
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User {self.email} role={self.role}>"


class Product(db.Model):
    __tablename__ = "product"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, nullable=False)
    sku = db.Column(db.String, unique=True, nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String, nullable=False, default="")
    price = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)
    warehouse = db.Column(db.String)
    location = db.Column(db.String)
    barcode = db.Column(db.String)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    @property
    def status(self) -> str:
        return derived.product_status(self.stock, self.min_stock)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "description": self.description or "",
            "category": self.category,
            "price": _amount(self.price),
            "stock": self.stock,
            "min_stock": self.min_stock,
            "warehouse": self.warehouse,
            "location": self.location,
            "barcode": self.barcode,
            "status": self.status,
        }


class Warehouse(db.Model):
    __tablename__ = "warehouse"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    address = db.Column(db.String(255))
    coordinates = db.Column(db.JSON, nullable=True)
    staff = db.Column(db.Integer, nullable=False, default=0)
    items = db.Column(db.Integer, nullable=False, default=0)

    locations = db.relationship(
        "Location",
        back_populates="warehouse",
        cascade="all, delete-orphan",
        order_by="Location.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "coordinates": self.coordinates,
            "staff": self.staff,
            "items": self.items,
            "location_count": len(self.locations),
        }


class Location(db.Model):
    __tablename__ = "storage_location"

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouse.id"), nullable=False)
    rack = db.Column(db.String(32), nullable=False)
    shelf = db.Column(db.String(32), nullable=False)
    bin = db.Column(db.String(32), nullable=False)
    capacity = db.Column(db.Integer, nullable=False, default=0)
    occupied = db.Column(db.Integer, nullable=False, default=0)
    products = db.Column(db.JSON, nullable=False, default=list)
    coordinates = db.Column(db.JSON, nullable=True)

    warehouse = db.relationship("Warehouse", back_populates="locations")

    @property
    def code(self) -> str:
        return derived.location_code(self.rack, self.shelf, self.bin)

    @property
    def utilization(self) -> float:
        return derived.utilization_percent(self.occupied, self.capacity)

    @property
    def utilization_level(self) -> str:
        return derived.utilization_level(self.utilization)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "warehouse_id": self.warehouse_id,
            "rack": self.rack,
            "shelf": self.shelf,
            "bin": self.bin,
            "code": self.code,
            "capacity": self.capacity,
            "occupied": self.occupied,
            "products": list(self.products or []),
            "coordinates": self.coordinates,
            "utilization": round(self.utilization, 1),
            "utilization_level": self.utilization_level,
        }


class BatchStatus:
    GOOD = "Good"
    EXPIRED = "Expired"
    DAMAGED = "Damaged"
    LOST = "Lost"

    ALL = (GOOD, EXPIRED, DAMAGED, LOST)


class StockItem(db.Model):
    __tablename__ = "stock_item"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False)
    sku = db.Column(db.String, nullable=False)
    current_stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)
    max_stock = db.Column(db.Integer, nullable=False, default=0)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouse.id"), nullable=True)
    location = db.Column(db.String)
    last_updated = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    product = db.relationship("Product", backref="stock_items")
    warehouse = db.relationship("Warehouse")
    batches = db.relationship(
        "StockBatch",
        back_populates="stock_item",
        cascade="all, delete-orphan",
        order_by="StockBatch.id",
    )

    @property
    def product_name(self) -> str:
        return self.product.name if self.product is not None else ""

    @property
    def status(self) -> str:
        return derived.stock_status(self.current_stock, self.min_stock, self.max_stock)

    @property
    def batch_total(self) -> int:
        return sum(batch.quantity or 0 for batch in self.batches)

    @property
    def batch_variance(self) -> int:
        return (self.current_stock or 0) - self.batch_total

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "sku": self.sku,
            "current_stock": self.current_stock,
            "min_stock": self.min_stock,
            "max_stock": self.max_stock,
            "warehouse_id": self.warehouse_id,
            "warehouse": self.warehouse.name if self.warehouse is not None else None,
            "location": self.location,
            "last_updated": _iso(self.last_updated),
            "status": self.status,
            "batches": [batch.to_dict() for batch in self.batches],
            "batch_total": self.batch_total,
            "batch_variance": self.batch_variance,
        }


class StockBatch(db.Model):
    __tablename__ = "stock_batch"

    id = db.Column(db.Integer, primary_key=True)
    stock_item_id = db.Column(db.Integer, db.ForeignKey("stock_item.id"), nullable=False)
    batch_number = db.Column(db.String, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    expiry_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=BatchStatus.GOOD)

    stock_item = db.relationship("StockItem", back_populates="batches")

    def to_dict(self) -> dict:
        return {
            "batch_number": self.batch_number,
            "quantity": self.quantity,
            "expiry_date": _iso(self.expiry_date),
            "status": self.status,
        }


class LineItemMixin:
    """Shared shape of purchase and sales order lines.

    ``total`` is always derived from ``quantity`` and ``unit_price`` so it can
    never drift from the values it is computed from.
    """

    id = db.Column(db.Integer, primary_key=True)
    product_name = db.Column(db.String, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    @declared_attr
    def product_id(cls):
        return db.Column(db.Integer, db.ForeignKey("product.id"), nullable=True)

    @property
    def total(self) -> Decimal:
        return derived.line_total(self.quantity, self.unit_price)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": _amount(self.unit_price),
            "total": _amount(self.total),
        }


class PurchaseOrderStatus:
    DRAFT = "Draft"
    PENDING = "Pending"
    APPROVED = "Approved"
    RECEIVED = "Received"
    CANCELLED = "Cancelled"

    ALL = (DRAFT, PENDING, APPROVED, RECEIVED, CANCELLED)
    TRANSITIONS = {
        DRAFT: {PENDING, CANCELLED},
        PENDING: {APPROVED, CANCELLED},
        APPROVED: {RECEIVED, CANCELLED},
        RECEIVED: set(),
        CANCELLED: set(),
    }


class PurchaseOrder(db.Model):
    __tablename__ = "purchase_order"

    id = db.Column(db.Integer, primary_key=True)
    po_number = db.Column(db.String(32), unique=True, nullable=False)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendor.id"), nullable=True)
    vendor_name = db.Column(db.String, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=PurchaseOrderStatus.DRAFT)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    order_date = db.Column(db.Date, nullable=False, default=date.today)
    expected_delivery = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    vendor = db.relationship("Vendor")
    items = db.relationship(
        "PurchaseOrderLine",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderLine.id",
    )
    receipts = db.relationship(
        "GoodsReceipt",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="GoodsReceipt.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "po_number": self.po_number,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "status": self.status,
            "total_amount": _amount(self.total_amount),
            "order_date": _iso(self.order_date),
            "expected_delivery": _iso(self.expected_delivery),
            "items": [line.to_dict() for line in self.items],
        }

    def __repr__(self):
        return f"<PurchaseOrder {self.po_number} status={self.status}>"


class PurchaseOrderLine(LineItemMixin, db.Model):
    __tablename__ = "purchase_order_line"

    purchase_order_id = db.Column(
        db.Integer, db.ForeignKey("purchase_order.id"), nullable=False
    )

    purchase_order = db.relationship("PurchaseOrder", back_populates="items")


class GoodsReceipt(db.Model):
    __tablename__ = "goods_receipt"

    id = db.Column(db.Integer, primary_key=True)
    grn_number = db.Column(db.String(64), unique=True, nullable=False)
    purchase_order_id = db.Column(
        db.Integer, db.ForeignKey("purchase_order.id"), nullable=False
    )
    received_date = db.Column(db.Date, nullable=False, default=date.today)
    received_by = db.Column(db.String, nullable=False)
    notes = db.Column(db.Text)
    lines = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    purchase_order = db.relationship("PurchaseOrder", back_populates="receipts")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "grn_number": self.grn_number,
            "purchase_order_id": self.purchase_order_id,
            "received_date": _iso(self.received_date),
            "received_by": self.received_by,
            "notes": self.notes,
            "lines": list(self.lines or []),
        }


class SalesOrderStatus:
    DRAFT = "Draft"
    CONFIRMED = "Confirmed"
    RESERVED = "Reserved"
    DISPATCHED = "Dispatched"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    ALL = (DRAFT, CONFIRMED, RESERVED, DISPATCHED, DELIVERED, CANCELLED)
    OPEN = {DRAFT, CONFIRMED}
    TRANSITIONS = {
        DRAFT: {CONFIRMED, CANCELLED},
        CONFIRMED: {RESERVED, CANCELLED},
        RESERVED: {DISPATCHED, CANCELLED},
        DISPATCHED: {DELIVERED, CANCELLED},
        DELIVERED: {CANCELLED},
        CANCELLED: set(),
    }


class SalesOrder(db.Model):
    __tablename__ = "sales_order"

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(32), unique=True, nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customer.id"), nullable=True)
    customer_name = db.Column(db.String, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=SalesOrderStatus.DRAFT)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    currency = db.Column(db.String(8), nullable=False, default="USD")
    order_date = db.Column(db.Date, nullable=False, default=date.today)
    delivery_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    customer = db.relationship("Customer")
    items = db.relationship(
        "SalesOrderLine",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderLine.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "status": self.status,
            "total_amount": _amount(self.total_amount),
            "currency": self.currency,
            "order_date": _iso(self.order_date),
            "delivery_date": _iso(self.delivery_date),
            "items": [line.to_dict() for line in self.items],
        }

    def __repr__(self):
        return f"<SalesOrder {self.order_number} status={self.status}>"


class SalesOrderLine(LineItemMixin, db.Model):
    __tablename__ = "sales_order_line"

    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_order.id"), nullable=False)
    reserved = db.Column(db.Boolean, nullable=False, default=False)

    sales_order = db.relationship("SalesOrder", back_populates="items")

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["reserved"] = bool(self.reserved)
        return payload


class PartyStatus:
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    BLACKLISTED = "Blacklisted"

    ALL = (ACTIVE, INACTIVE, BLACKLISTED)


class PartyMixin:
    """Columns shared by vendors and customers."""

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), unique=True, nullable=False)
    name = db.Column(db.String, nullable=False)
    contact_person = db.Column(db.String, nullable=False)
    email = db.Column(db.String, nullable=False)
    phone = db.Column(db.String, nullable=False)
    address = db.Column(db.String, nullable=False)
    gstin = db.Column(db.String)
    vat_number = db.Column(db.String)
    payment_terms = db.Column(db.String, nullable=False, default="Net 30")
    status = db.Column(db.String(16), nullable=False, default=PartyStatus.ACTIVE)
    order_history = db.Column(db.JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "contact_person": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "gstin": self.gstin,
            "vat_number": self.vat_number,
            "payment_terms": self.payment_terms,
            "status": self.status,
            "order_history": list(self.order_history or []),
        }


class Vendor(PartyMixin, db.Model):
    __tablename__ = "vendor"

    documents = db.Column(db.JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["documents"] = list(self.documents or [])
        return payload


class Customer(PartyMixin, db.Model):
    __tablename__ = "customer"

    credit_limit = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["credit_limit"] = _amount(self.credit_limit)
        return payload


class TransferStatus:
    PENDING = "pending"
    IN_TRANSIT = "in-transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ALL = (PENDING, IN_TRANSIT, COMPLETED, CANCELLED)
    CLOSED = {COMPLETED, CANCELLED}
    TRANSITIONS = {
        PENDING: {IN_TRANSIT, CANCELLED},
        IN_TRANSIT: {COMPLETED, CANCELLED},
        COMPLETED: set(),
        CANCELLED: set(),
    }


class StockTransfer(db.Model):
    __tablename__ = "stock_transfer"

    id = db.Column(db.Integer, primary_key=True)
    product_sku = db.Column(db.String, nullable=False)
    product_name = db.Column(db.String, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    from_warehouse = db.Column(db.String, nullable=False)
    to_warehouse = db.Column(db.String, nullable=False)
    from_location = db.Column(db.String)
    to_location = db.Column(db.String)
    status = db.Column(db.String(16), nullable=False, default=TransferStatus.PENDING)
    requested_by = db.Column(db.String, nullable=False)
    requested_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    notes = db.Column(db.Text)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_sku": self.product_sku,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "from_warehouse": self.from_warehouse,
            "to_warehouse": self.to_warehouse,
            "from_location": self.from_location,
            "to_location": self.to_location,
            "status": self.status,
            "requested_by": self.requested_by,
            "requested_at": _iso(self.requested_at),
            "completed_at": _iso(self.completed_at),
            "notes": self.notes,
        }


class OrderStatus:
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    ALL = (PENDING, PROCESSING, SHIPPED, DELIVERED, CANCELLED)


class OrderPriority:
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    ALL = (LOW, MEDIUM, HIGH)


class Order(db.Model):
    __tablename__ = "customer_order"

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(32), unique=True, nullable=False)
    customer = db.Column(db.String, nullable=False)
    items = db.Column(db.Integer, nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    status = db.Column(db.String(16), nullable=False, default=OrderStatus.PENDING)
    priority = db.Column(db.String(8), nullable=False, default=OrderPriority.MEDIUM)
    order_date = db.Column(db.Date, nullable=False, default=date.today)
    delivery_date = db.Column(db.Date, nullable=True)
    warehouse = db.Column(db.String, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "customer": self.customer,
            "items": self.items,
            "total": _amount(self.total),
            "status": self.status,
            "priority": self.priority,
            "order_date": _iso(self.order_date),
            "delivery_date": _iso(self.delivery_date),
            "warehouse": self.warehouse,
        }


class ActivityEvent(db.Model):
    __tablename__ = "activity_event"

    STOCK_UPDATE = "stock_update"
    ORDER = "order"
    SHIPMENT = "shipment"
    ALERT = "alert"

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(32), nullable=False)
    message = db.Column(db.String(255), nullable=False)
    user_name = db.Column(db.String(255), nullable=False, default="System")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.event_type,
            "message": self.message,
            "user": self.user_name,
            "created_at": _iso(self.created_at),
        }


class AppSetting(db.Model):
    __tablename__ = "app_setting"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), unique=True, nullable=False)
    value = db.Column(db.JSON, nullable=True)
    updated_by = db.Column(db.String(255), nullable=True)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
