# backend/outlet_pos/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/outlet_pos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///outlet_pos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Receipt header
    STORE_NAME = os.environ.get("STORE_NAME", "OUTLET STORE")
    STORE_LOCATION = os.environ.get("STORE_LOCATION")

    # Batches expiring within this many days are moved out first
    NEAR_EXPIRY_DAYS = int(os.environ.get("NEAR_EXPIRY_DAYS", "30"))

    # Directory for printed bill copies; unset = console only
    BILL_ARCHIVE_DIR = os.environ.get("BILL_ARCHIVE_DIR")

    # Mock gateway: approve card/PayPal payments unless set to false
    PAYMENT_GATEWAY_APPROVE = _env_bool("PAYMENT_GATEWAY_APPROVE", True)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
