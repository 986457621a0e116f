# backend/storefront/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Pooled connections are checked before reuse
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Refuse order placement that would drive a (product, size) balance negative
    STOREFRONT_ENFORCE_STOCK = _env_bool("STOREFRONT_ENFORCE_STOCK", True)

    STOREFRONT_LOG_LEVEL = os.environ.get("STOREFRONT_LOG_LEVEL", "INFO")

    STOREFRONT_PRICE_TIERS = tuple(
        t.strip()
        for t in os.environ.get("STOREFRONT_PRICE_TIERS", "Retailer,Customer").split(",")
        if t.strip()
    )
