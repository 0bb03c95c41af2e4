# backend/dealernet/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/dealernet.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///dealernet.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Payment receipts. None means "<instance_path>/receipts", resolved in create_app.
    RECEIPT_UPLOAD_DIR = os.environ.get("RECEIPT_UPLOAD_DIR")
    RECEIPT_BASE_URL = os.environ.get("RECEIPT_BASE_URL", "/uploads/receipts")
    RECEIPT_ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "webp", "heic", "pdf"}
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))

    # Where dealers send money before uploading a receipt (admin can change it at runtime)
    DEFAULT_UPI_ID = os.environ.get("DEFAULT_UPI_ID", "")

    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24))
    SESSION_IDLE_TIMEOUT_HOURS = int(os.environ.get("SESSION_IDLE_TIMEOUT_HOURS", 2))

    # Browser origins allowed to call the API (the mobile client sends no Origin)
    CORS_ALLOWED_ORIGINS = {
        o.strip()
        for o in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:8081,http://127.0.0.1:8081,http://localhost:19006",
        ).split(",")
        if o.strip()
    }
