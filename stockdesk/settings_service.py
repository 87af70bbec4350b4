from __future__ import annotations

from copy import deepcopy
from datetime import datetime
from typing import Dict

from flask import g

from stockdesk.extensions import db
from stockdesk.models import (
    AppSetting,
    Customer,
    GoodsReceipt,
    Location,
    Order,
    Product,
    PurchaseOrder,
    SalesOrder,
    StockItem,
    StockTransfer,
    User,
    Vendor,
    Warehouse,
)
from stockdesk.permissions import SessionContext
from stockdesk.utils.parsing import PayloadReader

CURRENCIES = ("USD", "EUR", "GBP", "JPY")
TIMEZONES = ("UTC", "EST", "PST", "GMT")
LANGUAGES = ("en", "es", "fr", "de")
DATE_FORMATS = ("MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD")
RETENTION_DAYS = (7, 30, 90, 365)

DEFAULT_SETTINGS: Dict[str, dict] = {
    "general": {
        "currency": "USD",
        "timezone": "UTC",
        "language": "en",
        "date_format": "MM/DD/YYYY",
        "low_stock_threshold": 10,
        "auto_reorder": False,
    },
    "notifications": {
        "email": True,
        "sms": False,
        "low_stock": True,
        "order_updates": True,
        "system_alerts": True,
    },
    "backup": {
        "auto_backup": False,
        "retention_days": 30,
    },
}

SNAPSHOT_SCOPES = {
    "inventory": (
        ("products", Product),
        ("stock_items", StockItem),
        ("warehouses", Warehouse),
        ("locations", Location),
    ),
    "full": (
        ("products", Product),
        ("stock_items", StockItem),
        ("warehouses", Warehouse),
        ("locations", Location),
        ("transfers", StockTransfer),
        ("purchase_orders", PurchaseOrder),
        ("goods_receipts", GoodsReceipt),
        ("sales_orders", SalesOrder),
        ("vendors", Vendor),
        ("customers", Customer),
        ("orders", Order),
        ("users", User),
    ),
}


def _get_cache() -> Dict[str, dict]:
    cache: Dict[str, dict] = getattr(g, "_app_settings_cache", {})
    if not getattr(g, "_app_settings_cache", None):
        g._app_settings_cache = cache
    return cache


def get_section(section: str) -> dict:
    if section not in DEFAULT_SETTINGS:
        raise KeyError(section)

    cache = _get_cache()
    if section in cache:
        return deepcopy(cache[section])

    values = deepcopy(DEFAULT_SETTINGS[section])
    setting = AppSetting.query.filter_by(key=section).first()
    if setting is not None and isinstance(setting.value, dict):
        values.update({key: setting.value[key] for key in values if key in setting.value})

    cache[section] = values
    return deepcopy(values)


def get_settings() -> dict:
    return {section: get_section(section) for section in DEFAULT_SETTINGS}


def _read_general(reader: PayloadReader) -> dict:
    values = {}
    if reader.has("currency"):
        values["currency"] = reader.choice("currency", "Currency", CURRENCIES, required=True)
    if reader.has("timezone"):
        values["timezone"] = reader.choice("timezone", "Timezone", TIMEZONES, required=True)
    if reader.has("language"):
        values["language"] = reader.choice("language", "Language", LANGUAGES, required=True)
    if reader.has("date_format"):
        values["date_format"] = reader.choice("date_format", "Date format", DATE_FORMATS, required=True)
    if reader.has("low_stock_threshold"):
        values["low_stock_threshold"] = reader.integer(
            "low_stock_threshold", "Low stock threshold", required=True
        )
    if reader.has("auto_reorder"):
        values["auto_reorder"] = reader.boolean("auto_reorder", "Auto reorder")
    return values


def _read_flags(reader: PayloadReader, keys) -> dict:
    values = {}
    for key in keys:
        if reader.has(key):
            values[key] = reader.boolean(key, key.replace("_", " ").capitalize())
    return values


def _read_backup(reader: PayloadReader) -> dict:
    values = _read_flags(reader, ("auto_backup",))
    if reader.has("retention_days"):
        days = reader.integer("retention_days", "Backup retention", required=True)
        if days is not None and days not in RETENTION_DAYS:
            reader.errors.append(
                "Backup retention must be one of: "
                + ", ".join(str(option) for option in RETENTION_DAYS)
                + " days."
            )
        else:
            values["retention_days"] = days
    return values


def update_section(section: str, payload: dict, context: SessionContext) -> dict:
    if section not in DEFAULT_SETTINGS:
        raise KeyError(section)

    reader = PayloadReader(payload)
    if section == "general":
        changes = _read_general(reader)
    elif section == "notifications":
        changes = _read_flags(reader, DEFAULT_SETTINGS["notifications"])
    else:
        changes = _read_backup(reader)
    reader.raise_for_errors()

    values = get_section(section)
    values.update(changes)

    setting = AppSetting.query.filter_by(key=section).first()
    if setting is None:
        setting = AppSetting(key=section)
        db.session.add(setting)

    setting.value = values
    setting.updated_by = context.email or context.name
    setting.updated_at = datetime.utcnow()

    db.session.commit()

    cache = _get_cache()
    cache[section] = values
    return deepcopy(values)


def export_snapshot(scope: str, context: SessionContext) -> dict:
    """Serialize the store contents for download."""

    if scope not in SNAPSHOT_SCOPES:
        raise KeyError(scope)

    snapshot = {
        "scope": scope,
        "exported_at": datetime.utcnow().isoformat(),
        "exported_by": context.email or context.name,
    }
    for key, model in SNAPSHOT_SCOPES[scope]:
        snapshot[key] = [record.to_dict() for record in model.query.order_by(model.id)]
    if scope == "full":
        snapshot["settings"] = get_settings()
    return snapshot
