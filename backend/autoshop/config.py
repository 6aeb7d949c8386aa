# backend/autoshop/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/autoshop.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///autoshop.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Wall-clock zone used for "today" / "this month" in the dashboard and reports
    SHOP_TIMEZONE = os.environ.get("SHOP_TIMEZONE", "Asia/Jerusalem")

    # Products at or below this quantity count as low stock
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "3"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
