"""Startup records: the administrator account and the demo data set."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from stockdesk.extensions import db
from stockdesk.models import (
    ActivityEvent,
    BatchStatus,
    Customer,
    Location,
    Order,
    OrderPriority,
    OrderStatus,
    Product,
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderStatus,
    Roles,
    SalesOrder,
    SalesOrderLine,
    SalesOrderStatus,
    StockBatch,
    StockItem,
    StockTransfer,
    TransferStatus,
    User,
    Vendor,
    Warehouse,
)
from stockdesk.services.common import lines_total

logger = logging.getLogger(__name__)

DEMO_USERS = (
    ("Sarah Manager", "manager@inventorypro.com", Roles.MANAGER),
    ("Mike Staff", "staff@inventorypro.com", Roles.STAFF),
    ("Alex Auditor", "auditor@inventorypro.com", Roles.AUDITOR),
)


def ensure_superuser_account(name: str, email: str, password: str) -> None:
    """Create or update the default administrative user."""

    if not email:
        return

    for attempt in range(3):
        try:
            user = User.query.filter_by(email=email.lower()).first()
            if user is None:
                user = User(name=name or email, email=email.lower())
                db.session.add(user)
            user.role = Roles.ADMINISTRATOR
            user.active = True
            if password:
                user.set_password(password)
            db.session.commit()
            return
        except IntegrityError:
            db.session.rollback()
            if attempt == 2:
                raise


def ensure_demo_users(password: str) -> None:
    created = False
    for name, email, role in DEMO_USERS:
        if User.query.filter_by(email=email).first() is not None:
            continue
        user = User(name=name, email=email, role=role)
        user.set_password(password)
        db.session.add(user)
        created = True
    if created:
        db.session.commit()


def _products() -> dict[str, Product]:
    rows = (
        ("Office Paper A4", "OFF-001", "Office Supplies", "12.99", 150, 50, "Main Warehouse", "A1-S1-B1"),
        ("USB Cable Type-C", "ELE-045", "Electronics", "8.99", 75, 20, "Distribution Center", "A1-S2-B3"),
        ("Wireless Mouse", "ELE-023", "Electronics", "24.99", 32, 50, "Distribution Center", "C1-S2-B7"),
    )
    products = {}
    for name, sku, category, price, stock, min_stock, warehouse, location in rows:
        product = Product(
            name=name,
            sku=sku,
            category=category,
            price=Decimal(price),
            stock=stock,
            min_stock=min_stock,
            warehouse=warehouse,
            location=location,
        )
        db.session.add(product)
        products[sku] = product
    return products


def _warehouses() -> dict[str, Warehouse]:
    rows = (
        ("Main Warehouse", "New York, NY", 12, 1250),
        ("West Coast Hub", "Los Angeles, CA", 8, 890),
        ("Distribution Center", "Chicago, IL", 15, 1580),
    )
    warehouses = {}
    for name, address, staff, items in rows:
        warehouse = Warehouse(name=name, address=address, staff=staff, items=items)
        db.session.add(warehouse)
        warehouses[name] = warehouse

    main = warehouses["Main Warehouse"]
    main.locations = [
        Location(
            rack="A1",
            shelf="S1",
            bin="B1",
            capacity=100,
            occupied=75,
            products=["OFF-001", "OFF-002"],
            coordinates={"x": 10, "y": 5, "z": 1},
        ),
        Location(
            rack="A1",
            shelf="S2",
            bin="B3",
            capacity=80,
            occupied=32,
            products=["ELE-045"],
            coordinates={"x": 10, "y": 8, "z": 2},
        ),
    ]
    return warehouses


def seed_demo_data() -> bool:
    """Load the demo records into an empty store; returns False if data exists."""

    if Product.query.first() is not None:
        return False

    products = _products()
    warehouses = _warehouses()
    db.session.flush()
    paper_id = products["OFF-001"].id
    cable_id = products["ELE-045"].id

    paper = StockItem(
        product=products["OFF-001"],
        sku="OFF-001",
        current_stock=150,
        min_stock=50,
        max_stock=500,
        warehouse=warehouses["Main Warehouse"],
        location="A1-S1-B1",
        batches=[
            StockBatch(batch_number="B001", quantity=100, expiry_date=date(2025, 12, 31), status=BatchStatus.GOOD),
            StockBatch(batch_number="B002", quantity=50, expiry_date=date(2025, 6, 30), status=BatchStatus.GOOD),
        ],
    )
    mouse = StockItem(
        product=products["ELE-023"],
        sku="ELE-023",
        current_stock=32,
        min_stock=50,
        max_stock=200,
        warehouse=warehouses["Distribution Center"],
        location="C1-S2-B7",
        batches=[StockBatch(batch_number="B003", quantity=32, status=BatchStatus.GOOD)],
    )
    db.session.add_all([paper, mouse])

    vendor = Vendor(
        code="V001",
        name="ABC Suppliers Ltd",
        contact_person="John Smith",
        email="john@abcsuppliers.com",
        phone="+1-555-0123",
        address="123 Business St, New York, NY 10001",
        gstin="GSTIN123456789",
        payment_terms="Net 30",
        order_history=["PO-2024-001"],
        documents=[],
    )
    customer = Customer(
        code="C001",
        name="Tech Solutions Inc",
        contact_person="Jane Doe",
        email="jane@techsolutions.com",
        phone="+1-555-0456",
        address="456 Tech Ave, San Francisco, CA 94105",
        credit_limit=Decimal("50000"),
        payment_terms="Net 15",
        order_history=["SO-2024-001"],
    )
    db.session.add_all([vendor, customer])

    po_lines = [
        PurchaseOrderLine(product_id=paper_id, product_name="Office Paper A4", quantity=100, unit_price=Decimal("12.99")),
        PurchaseOrderLine(product_id=cable_id, product_name="USB Cable Type-C", quantity=50, unit_price=Decimal("8.99")),
    ]
    po = PurchaseOrder(
        po_number="PO-2024-001",
        vendor=vendor,
        vendor_name=vendor.name,
        status=PurchaseOrderStatus.PENDING,
        order_date=date(2024, 1, 15),
        expected_delivery=date(2024, 1, 22),
        items=po_lines,
        total_amount=lines_total(po_lines),
    )
    so_lines = [
        SalesOrderLine(product_id=paper_id, product_name="Office Paper A4", quantity=50, unit_price=Decimal("12.99"), reserved=False),
        SalesOrderLine(product_id=cable_id, product_name="USB Cable Type-C", quantity=25, unit_price=Decimal("8.99"), reserved=False),
    ]
    so = SalesOrder(
        order_number="SO-2024-001",
        customer=customer,
        customer_name=customer.name,
        status=SalesOrderStatus.CONFIRMED,
        currency="USD",
        order_date=date(2024, 1, 15),
        delivery_date=date(2024, 1, 20),
        items=so_lines,
        total_amount=lines_total(so_lines),
    )
    db.session.add_all([po, so])

    db.session.add_all(
        [
            StockTransfer(
                product_sku="OFF-001",
                product_name="Office Paper A4",
                quantity=50,
                from_warehouse="Main Warehouse",
                to_warehouse="West Coast Hub",
                from_location="A1-S1-B1",
                to_location="B2-S1-B1",
                status=TransferStatus.PENDING,
                requested_by="John Admin",
                requested_at=datetime(2024, 1, 15, 10, 30),
                notes="Urgent restock needed",
            ),
            StockTransfer(
                product_sku="ELE-045",
                product_name="USB Cable Type-C",
                quantity=25,
                from_warehouse="Distribution Center",
                to_warehouse="Main Warehouse",
                from_location="C1-S2-B3",
                to_location="A1-S2-B3",
                status=TransferStatus.IN_TRANSIT,
                requested_by="Sarah Manager",
                requested_at=datetime(2024, 1, 14, 14, 15),
            ),
        ]
    )

    db.session.add_all(
        [
            Order(
                order_number="ORD-2024-001",
                customer="ABC Corporation",
                items=15,
                total=Decimal("2450"),
                status=OrderStatus.PROCESSING,
                priority=OrderPriority.HIGH,
                order_date=date(2024, 1, 15),
                delivery_date=date(2024, 1, 20),
                warehouse="Main Warehouse",
            ),
            Order(
                order_number="ORD-2024-002",
                customer="XYZ Industries",
                items=8,
                total=Decimal("1200"),
                status=OrderStatus.PENDING,
                priority=OrderPriority.MEDIUM,
                order_date=date(2024, 1, 14),
                delivery_date=date(2024, 1, 18),
                warehouse="West Coast Hub",
            ),
            Order(
                order_number="ORD-2024-003",
                customer="Tech Solutions LLC",
                items=22,
                total=Decimal("3800"),
                status=OrderStatus.SHIPPED,
                priority=OrderPriority.HIGH,
                order_date=date(2024, 1, 12),
                delivery_date=date(2024, 1, 16),
                warehouse="Distribution Center",
            ),
        ]
    )

    db.session.add_all(
        [
            ActivityEvent(event_type=ActivityEvent.STOCK_UPDATE, message="Stock updated for Office Paper A4", user_name="John Doe"),
            ActivityEvent(event_type=ActivityEvent.ORDER, message="New purchase order #PO-2024-001 created", user_name="Jane Smith"),
            ActivityEvent(event_type=ActivityEvent.SHIPMENT, message="Shipment #SH-2024-045 dispatched", user_name="Mike Johnson"),
            ActivityEvent(event_type=ActivityEvent.ALERT, message="Low stock alert for Wireless Mouse", user_name="System"),
        ]
    )

    db.session.commit()
    logger.info("Demo data loaded")
    return True
