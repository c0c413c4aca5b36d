import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, File, Request, UploadFile, WebSocket, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError
from pydantic.alias_generators import to_camel
from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool

import config
import database
import messages
import realtime
import rooms
import uploads
import users
from errors import ChatError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database.connect()
    database.ensure_indexes()
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    yield
    database.close()


app = FastAPI(title="Room Chat API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount(uploads.URL_PREFIX, StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="uploads")


# -----------------------------
# Error mapping
# -----------------------------
@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    return JSONResponse(status_code=exc.status_code, content={"msg": exc.msg})


@app.exception_handler(ValidationError)
async def store_validation_handler(request: Request, exc: ValidationError):
    # Raised by the document schemas inside the services
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"msg": "Invalid payload"})


@app.exception_handler(PyMongoError)
@app.exception_handler(OSError)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception("%s %s failed", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"msg": "Internal server error"})


# -----------------------------
# Models
# -----------------------------
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class CreateRoomRequest(CamelModel):
    name: str = Field(..., min_length=1)
    creator: EmailStr


class RoomMemberRequest(CamelModel):
    room_name: str = Field(..., min_length=1)
    email: EmailStr


class SendMessageRequest(CamelModel):
    sender_email: EmailStr
    sender_name: str
    receiver: str = Field(..., min_length=1)
    text: str = ""
    file: Optional[str] = None
    is_room: bool = False


# -----------------------------
# Routes
# -----------------------------
@app.get("/")
def read_root():
    return {"msg": "Room Chat API running"}


@app.get("/health")
def health():
    response = {"backend": "running", "database": "unavailable", "collections": []}
    try:
        response.update(database.ping())
    except (RuntimeError, PyMongoError) as e:
        logger.warning("Health check failed: %s", e)
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=response)
    return response


# Auth
@app.post("/register")
def register(payload: RegisterRequest):
    return users.register(payload.name, payload.email, payload.password)


@app.post("/login")
def login(payload: LoginRequest):
    return users.login(payload.email, payload.password)


@app.get("/users")
def list_users():
    return users.list_users()


# Rooms
@app.get("/rooms")
def list_rooms():
    return rooms.list_rooms()


@app.post("/createRoom")
def create_room(payload: CreateRoomRequest):
    rooms.create_room(payload.name, payload.creator)
    return {"msg": "Room created"}


@app.post("/requestJoinRoom")
def request_join_room(payload: RoomMemberRequest):
    rooms.request_join(payload.room_name, payload.email)
    return {"msg": "Request sent"}


@app.post("/approveJoin")
def approve_join(payload: RoomMemberRequest):
    rooms.approve_join(payload.room_name, payload.email)
    return {"msg": "User approved"}


@app.delete("/deleteRoom/{name}")
def delete_room(name: str):
    deleted = rooms.delete_room(name)
    return {"msg": "Room deleted", "deletedMessages": deleted}


# Files
@app.post("/upload")
def upload(file: UploadFile = File(...)):
    path = uploads.store_attachment(file.file.read(), file.filename)
    return {"path": path}


# Messages
@app.get("/messages/{kind}/{id}")
def get_messages(kind: messages.ConversationKind, id: str, me: Optional[str] = None):
    return messages.fetch_conversation(kind, id, me)


@app.post("/messages")
async def send_message(payload: SendMessageRequest):
    message = await run_in_threadpool(messages.send_message, **payload.model_dump())
    if config.REALTIME_ENABLED:
        await realtime.broker.publish_message(message)
    return message


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    if not config.REALTIME_ENABLED:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await realtime.serve(websocket)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
