"""
Room store and membership workflow.

A room document carries two email sets, ``members`` and ``joinRequests``,
which never overlap. Every mutation is a single update on the room
document so concurrent requests cannot leave an email in both sets or in
neither; there is no read-modify-write anywhere in this module.
"""
import logging
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

import database
from errors import ConflictError, NotFoundError
from schemas import Room, to_public

logger = logging.getLogger(__name__)


def create_room(name: str, creator: str) -> Dict[str, Any]:
    rooms = database.collection(database.ROOMS)
    if rooms.find_one({"name": name}):
        raise ConflictError("Room exists")
    room = Room(name=name, creator=creator, members=[creator], join_requests=[])
    doc = room.to_document()
    try:
        rooms.insert_one(doc)
    except DuplicateKeyError:
        raise ConflictError("Room exists")
    logger.info("Room %s created by %s", name, creator)
    return to_public(doc)


def get_room(name: str) -> Optional[Dict[str, Any]]:
    return to_public(database.collection(database.ROOMS).find_one({"name": name}))


def list_rooms() -> List[Dict[str, Any]]:
    return [to_public(r) for r in database.get_documents(database.ROOMS)]


def request_join(room_name: str, email: str) -> bool:
    """Add ``email`` to the room's pending requests.

    Returns False when nothing changed because the email is already a
    member or already pending. Raises NotFoundError for an unknown room.
    """
    rooms = database.collection(database.ROOMS)
    result = rooms.update_one(
        {"name": room_name, "members": {"$ne": email}},
        {"$addToSet": {"joinRequests": email}},
    )
    if result.matched_count == 0:
        if rooms.count_documents({"name": room_name}, limit=1) == 0:
            raise NotFoundError("Room not found")
        logger.debug("%s is already a member of %s", email, room_name)
        return False
    return result.modified_count > 0


def approve_join(room_name: str, email: str) -> bool:
    """Move ``email`` from the pending requests into the members.

    Idempotent; returns False when ``email`` was already a member with no
    pending request.
    """
    result = database.collection(database.ROOMS).update_one(
        {"name": room_name},
        {"$addToSet": {"members": email}, "$pull": {"joinRequests": email}},
    )
    if result.matched_count == 0:
        raise NotFoundError("Room not found")
    if result.modified_count:
        logger.info("Approved %s into %s", email, room_name)
    return result.modified_count > 0


def delete_room(name: str) -> int:
    """Delete the room and its room-addressed messages.

    Returns the number of messages removed. Private messages are never
    touched. Without MONGO_TRANSACTIONS the two deletes are separate
    writes, so a message posted in between may outlive the room.
    """
    with database.transaction() as session:
        deleted = database.collection(database.ROOMS).delete_one({"name": name}, session=session)
        if deleted.deleted_count == 0:
            raise NotFoundError("Room not found")
        result = database.collection(database.MESSAGES).delete_many(
            {"receiver": name, "isRoom": True}, session=session
        )
    logger.info("Deleted room %s and %d messages", name, result.deleted_count)
    return result.deleted_count
