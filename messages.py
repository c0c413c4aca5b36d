import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import config
import database
import rooms
from errors import BadRequestError, ForbiddenError, NotFoundError
from schemas import Message, to_public

logger = logging.getLogger(__name__)


class ConversationKind(str, Enum):
    room = "room"
    private = "private"


def send_message(
    sender_email: str,
    sender_name: str,
    receiver: str,
    text: str = "",
    file: Optional[str] = None,
    is_room: bool = False,
) -> Dict[str, Any]:
    if is_room:
        room = rooms.get_room(receiver)
        if room is None:
            raise NotFoundError("Room not found")
        if config.REQUIRE_ROOM_MEMBERSHIP and sender_email not in room.get("members", []):
            logger.warning("%s tried to post in %s without membership", sender_email, receiver)
            raise ForbiddenError("Not a member of this room")
    message = Message(
        sender_email=sender_email,
        sender_name=sender_name,
        receiver=receiver,
        text=text,
        file=file,
        is_room=is_room,
    )
    doc = message.to_document()
    database.collection(database.MESSAGES).insert_one(doc)
    return to_public(doc)


def conversation_filter(kind: ConversationKind, id: str, me: Optional[str] = None) -> Dict[str, Any]:
    if ConversationKind(kind) is ConversationKind.room:
        return {"receiver": id, "isRoom": True}
    if not me:
        raise BadRequestError("Query parameter 'me' is required for private conversations")
    return {
        "isRoom": False,
        "$or": [
            {"senderEmail": me, "receiver": id},
            {"senderEmail": id, "receiver": me},
        ],
    }


def fetch_conversation(kind: ConversationKind, id: str, me: Optional[str] = None) -> List[Dict[str, Any]]:
    docs = database.get_documents(
        database.MESSAGES,
        conversation_filter(kind, id, me),
        sort=[("time", 1), ("_id", 1)],
    )
    return [to_public(m) for m in docs]
