import os
from decimal import Decimal


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # The store lives for the lifetime of the process only.
    SQLALCHEMY_DATABASE_URI = os.getenv("DB_URL", "sqlite:///:memory:")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "supersecret")

    ADMIN_NAME = os.getenv("ADMIN_NAME", "John Admin")
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@inventorypro.com")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

    SEED_DEMO_DATA = _env_flag("SEED_DEMO_DATA", "true")
    DEMO_USER_PASSWORD = os.getenv("DEMO_USER_PASSWORD", "demo123")

    # Goods receipts and sales reservations leave stock untouched unless enabled.
    LINK_ORDERS_TO_STOCK = _env_flag("LINK_ORDERS_TO_STOCK")
    STRICT_STATUS_TRANSITIONS = _env_flag("STRICT_STATUS_TRANSITIONS")

    EXPIRY_HORIZON_DAYS = int(os.getenv("EXPIRY_HORIZON_DAYS", 30))
    INVOICE_TAX_RATE = Decimal(os.getenv("INVOICE_TAX_RATE", "0.10"))
    INVOICE_DUE_DAYS = int(os.getenv("INVOICE_DUE_DAYS", 30))
    DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")

    COMPANY_NAME = os.getenv("COMPANY_NAME", "Your Company Name")
    COMPANY_ADDRESS = os.getenv("COMPANY_ADDRESS", "123 Business St, City, State 12345")
    COMPANY_PHONE = os.getenv("COMPANY_PHONE", "(555) 123-4567")
    COMPANY_EMAIL = os.getenv("COMPANY_EMAIL", "info@company.com")

    BASE_DIR = os.path.dirname(os.path.abspath(__file__))
    LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
