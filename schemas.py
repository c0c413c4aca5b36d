"""
Document schemas for the chat backend.

Each model is one MongoDB collection. Stored field names are camelCase
(``senderEmail``, ``joinRequests``) so documents match the JSON the
clients send; Python code uses the snake_case attributes.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    # MongoDB stores milliseconds
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class User(Document):
    """
    Registered identity
    Collection: "users"
    """
    name: str = Field(..., min_length=1, description="Display name")
    email: EmailStr = Field(..., description="Email address, unique")
    password: str = Field(..., description="bcrypt hash of the password")
    avatar: str = Field("", description="Avatar path")


class Room(Document):
    """
    Named chat channel
    Collection: "rooms"
    """
    name: str = Field(..., min_length=1, description="Room name, unique")
    creator: str = Field(..., description="Creator email")
    members: List[str] = Field(default_factory=list, description="Member emails")
    join_requests: List[str] = Field(default_factory=list, description="Pending member emails")


class Message(Document):
    """
    Chat message addressed to a room or to a single user
    Collection: "messages"
    """
    sender_email: EmailStr = Field(..., description="Sender email")
    sender_name: str = Field(..., description="Sender display name")
    receiver: str = Field(..., min_length=1, description="Room name when is_room, else peer email")
    text: str = Field("", description="Message text")
    file: Optional[str] = Field(None, description="Attachment path from /upload")
    is_room: bool = Field(False, description="Room-addressed message")
    time: datetime = Field(default_factory=utcnow, description="Server timestamp")


def to_public(doc):
    if not doc:
        return doc
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    for k, v in list(d.items()):
        if isinstance(v, datetime):
            if v.tzinfo is None:
                v = v.replace(tzinfo=timezone.utc)
            d[k] = v.isoformat()
    return d
