# backend/counterpos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key (also signs the cart cookie)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/counterpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///counterpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Store identity printed on receipts and reports
    STORE_NAME = os.environ.get("STORE_NAME", "Disni Designs")
    STORE_TAGLINE = os.environ.get(
        "STORE_TAGLINE",
        "Trophy | Flex | Banner | Vinyl | Laser & Cloth Printing",
    )
    STORE_ADDRESS = os.environ.get("STORE_ADDRESS", "Al Rayan Complex Moochikkad, Alathur")
    STORE_PHONE = os.environ.get("STORE_PHONE", "8891410945")
    RECEIPT_TERMS = os.environ.get(
        "RECEIPT_TERMS",
        "Payment is due immediately. Goods once sold cannot be taken back or exchanged.",
    )

    # "Today", "this month" and receipt timestamps are computed in this zone
    STORE_TIMEZONE = os.environ.get("STORE_TIMEZONE", "Asia/Kolkata")
    CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "₹")

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "5"))

    # "memory" reduces full table scans in Python, "sql" pushes GROUP BY into the DB
    REPORT_AGGREGATOR = os.environ.get("REPORT_AGGREGATOR", "memory")

    # Browser origins allowed to call the API (the counter UI dev servers)
    CORS_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    }

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
