# backend/caisse/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/caisse.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///caisse.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Absolute difference (in currency units) still reported as a "minor" gap at close
    CASH_DIFFERENCE_MINOR_THRESHOLD = int(os.environ.get("CASH_DIFFERENCE_MINOR_THRESHOLD", "500"))

    # Stock-linked ledger writes: first try + one retry on lock/version conflicts
    INVENTORY_RETRY_ATTEMPTS = int(os.environ.get("INVENTORY_RETRY_ATTEMPTS", "2"))

    SESSION_LIST_LIMIT = int(os.environ.get("SESSION_LIST_LIMIT", "90"))
    STOCK_HISTORY_LIMIT = int(os.environ.get("STOCK_HISTORY_LIMIT", "50"))

    # Dashboard origins allowed to call the API from a browser
    CORS_ORIGINS = tuple(
        o.strip() for o in os.environ.get(
            "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",") if o.strip()
    )


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    INVENTORY_RETRY_ATTEMPTS = 2
