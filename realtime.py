"""
Publish/subscribe delivery for chat messages.

Subscribers are websockets keyed by topic: ``room:<name>`` for room
conversations and ``user:<email>`` for private ones. Messages are
persisted by ``messages.send_message`` first and published afterwards, so
clients that poll ``GET /messages`` and clients that listen here see the
same store.
"""
import logging
from typing import Any, Dict, List

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

import messages
from errors import ChatError
from schemas import Message

logger = logging.getLogger(__name__)


def room_topic(name: str) -> str:
    return f"room:{name}"


def user_topic(email: str) -> str:
    return f"user:{email}"


def message_topics(message: Dict[str, Any]) -> List[str]:
    if message.get("isRoom"):
        return [room_topic(message["receiver"])]
    topics = [user_topic(message["receiver"])]
    if message["senderEmail"] != message["receiver"]:
        topics.append(user_topic(message["senderEmail"]))
    return topics


class Broker:
    def __init__(self):
        self.subscribers: dict[str, List[WebSocket]] = {}

    def subscribe(self, topic: str, websocket: WebSocket):
        conns = self.subscribers.setdefault(topic, [])
        if websocket not in conns:
            conns.append(websocket)

    def unsubscribe(self, topic: str, websocket: WebSocket):
        conns = self.subscribers.get(topic, [])
        if websocket in conns:
            conns.remove(websocket)
        if not conns and topic in self.subscribers:
            del self.subscribers[topic]

    def unsubscribe_all(self, websocket: WebSocket):
        for topic in list(self.subscribers):
            self.unsubscribe(topic, websocket)

    async def publish(self, topic: str, data: dict) -> int:
        delivered = 0
        for ws in list(self.subscribers.get(topic, [])):
            try:
                await ws.send_json(data)
                delivered += 1
            except Exception:
                logger.warning("Dropping subscriber of %s after failed send", topic, exc_info=True)
                self.unsubscribe(topic, ws)
        return delivered

    async def publish_message(self, message: Dict[str, Any]) -> int:
        event = "roomMessage" if message.get("isRoom") else "privateMessage"
        payload = {"event": event, "message": message}
        delivered = 0
        for topic in message_topics(message):
            delivered += await self.publish(topic, payload)
        return delivered


broker = Broker()


def _message_args(data: dict, is_room: bool) -> dict:
    return Message(
        sender_email=data.get("senderEmail"),
        sender_name=data.get("senderName"),
        receiver=data.get("receiver"),
        text=data.get("text", ""),
        file=data.get("file"),
        is_room=is_room,
    ).model_dump(exclude={"time"})


async def handle_event(websocket: WebSocket, data: dict, hub: Broker = broker):
    event = data.get("event")
    if event == "joinRoom":
        hub.subscribe(room_topic(data["room"]), websocket)
        await websocket.send_json({"event": "joined", "topic": room_topic(data["room"])})
    elif event == "joinPrivate":
        hub.subscribe(user_topic(data["email"]), websocket)
        await websocket.send_json({"event": "joined", "topic": user_topic(data["email"])})
    elif event in ("roomMessage", "privateMessage"):
        args = _message_args(data, is_room=event == "roomMessage")
        message = await run_in_threadpool(messages.send_message, **args)
        await hub.publish_message(message)
    else:
        await websocket.send_json({"event": "error", "msg": f"Unknown event: {event}"})


async def serve(websocket: WebSocket, hub: Broker = broker):
    await websocket.accept()
    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "msg": "Invalid payload"})
                continue
            if not isinstance(data, dict):
                await websocket.send_json({"event": "error", "msg": "Invalid payload"})
                continue
            try:
                await handle_event(websocket, data, hub)
            except ChatError as e:
                await websocket.send_json({"event": "error", "msg": e.msg})
            except (KeyError, ValidationError) as e:
                await websocket.send_json({"event": "error", "msg": f"Invalid payload: {e}"})
    except WebSocketDisconnect:
        pass
    finally:
        hub.unsubscribe_all(websocket)
