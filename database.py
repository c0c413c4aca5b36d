import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

import config

logger = logging.getLogger(__name__)

USERS = "users"
ROOMS = "rooms"
MESSAGES = "messages"

_client: Optional[MongoClient] = None
_db: Optional[Database] = None


def connect(url: Optional[str] = None, name: Optional[str] = None, client: Optional[MongoClient] = None) -> Database:
    """Establish the shared client. Called once at startup, before serving traffic.

    Tests pass an in-memory ``client`` instead of a url.
    """
    global _client, _db
    if client is None:
        client = MongoClient(
            url or config.DATABASE_URL,
            connectTimeoutMS=config.MONGO_CONNECT_TIMEOUT_MS,
            socketTimeoutMS=config.MONGO_SOCKET_TIMEOUT_MS,
            tz_aware=True,
        )
    _client = client
    _db = client[name or config.DATABASE_NAME]
    logger.info("Using database %s", _db.name)
    return _db


def close() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


def get_db() -> Database:
    if _db is None:
        raise RuntimeError("Database is not initialized")
    return _db


def collection(name: str) -> Collection:
    return get_db()[name]


def ensure_indexes() -> None:
    collection(USERS).create_index("email", unique=True)
    collection(ROOMS).create_index("name", unique=True)
    collection(MESSAGES).create_index([("receiver", ASCENDING), ("isRoom", ASCENDING), ("time", ASCENDING)])


def ping() -> Dict[str, Any]:
    db = get_db()
    db.command("ping")
    return {"database": db.name, "collections": db.list_collection_names()}


@contextmanager
def transaction() -> Iterator[Optional[Any]]:
    """Yield a session bound to a transaction, or None when transactions are off.

    Callers pass the yielded value as ``session=`` to every write.
    """
    if not config.MONGO_TRANSACTIONS or _client is None:
        yield None
        return
    with _client.start_session() as session:
        with session.start_transaction():
            yield session


def get_documents(collection_name: str, filter_dict: Dict[str, Any] | None = None, projection: Optional[Dict[str, int]] = None, sort: Optional[list] = None) -> List[Dict[str, Any]]:
    cursor = collection(collection_name).find(filter_dict or {}, projection)
    if sort:
        cursor = cursor.sort(sort)
    return list(cursor)
