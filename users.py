import logging
from typing import Any, Dict, List

from pymongo.errors import DuplicateKeyError

import database
import security
from errors import ConflictError, NotFoundError, UnauthorizedError
from schemas import User

logger = logging.getLogger(__name__)


def register(name: str, email: str, password: str) -> Dict[str, Any]:
    users = database.collection(database.USERS)
    user = User(name=name, email=email, password=security.hash_password(password), avatar="")
    if users.find_one({"email": user.email}):
        logger.warning("Registration rejected, email already in use")
        raise ConflictError("User already exists")
    try:
        users.insert_one(user.to_document())
    except DuplicateKeyError:
        # Lost a race with a concurrent registration
        raise ConflictError("User already exists")
    logger.info("Registered user %s", user.email)
    return {"msg": "Registered successfully"}


def login(email: str, password: str) -> Dict[str, Any]:
    user = database.collection(database.USERS).find_one({"email": email})
    if not user:
        raise NotFoundError("User not found", status_code=400)
    if not security.verify_password(password, user.get("password", "")):
        raise UnauthorizedError("Wrong password")
    return {
        "token": security.issue_token(user["email"]),
        "email": user["email"],
        "name": user.get("name"),
        "avatar": user.get("avatar") or "",
    }


def list_users() -> List[Dict[str, Any]]:
    return database.get_documents(
        database.USERS,
        projection={"_id": 0, "name": 1, "email": 1, "avatar": 1},
        sort=[("_id", 1)],
    )
