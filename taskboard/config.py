# taskboard/config.py
"""Runtime settings read from environment variables."""

import os
from pathlib import Path

DB_PATH = Path(__file__).parent / "data.db"

STORE_BACKEND = os.getenv("TASKBOARD_STORE", "sqlite").lower()
DATABASE_URL = os.getenv("TASKBOARD_DATABASE_URL", f"sqlite:///{DB_PATH}")

REDIS_HOST = os.getenv("REDIS_HOST", "127.0.0.1")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_MAX_RETRIES = int(os.getenv("REDIS_MAX_RETRIES", "3"))

ALLOWED_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173,http://localhost:5000",
).split(",")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "5000"))
