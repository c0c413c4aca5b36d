import os
from typing import Optional


def _flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "chat_db")
MONGO_CONNECT_TIMEOUT_MS = _int("MONGO_CONNECT_TIMEOUT_MS", 10000)
MONGO_SOCKET_TIMEOUT_MS = _int("MONGO_SOCKET_TIMEOUT_MS", 45000)
# Multi-document transactions need a replica set or sharded cluster
MONGO_TRANSACTIONS = _flag("MONGO_TRANSACTIONS", False)

JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = _int("JWT_EXPIRES_MINUTES", None)
BCRYPT_ROUNDS = _int("BCRYPT_ROUNDS", 12)

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")

REQUIRE_ROOM_MEMBERSHIP = _flag("REQUIRE_ROOM_MEMBERSHIP", True)
REALTIME_ENABLED = _flag("REALTIME_ENABLED", True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = _int("PORT", 8000)
