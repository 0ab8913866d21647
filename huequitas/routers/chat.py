from __future__ import annotations

import json
import logging
from typing import Any

import anyio
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as SchemaError
from sqlalchemy.orm import Session

from huequitas.core.config import settings
from huequitas.core.errors import ValidationError
from huequitas.db.session import SessionLocal, get_db
from huequitas.models.messages import Message
from huequitas.schemas.chat import ChatMessage, OutgoingMessage, SocketEvent
from huequitas.services.chat import recent_messages, room_or_default, rooms, save_message, to_chat_message

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


@router.get("/messages", response_model=list[ChatMessage])
def message_history(
    db: Session = Depends(get_db),
    room: str = Query(default="general", max_length=100),
    limit: int = Query(default=50, ge=1, le=200),
) -> list[ChatMessage]:
    return [to_chat_message(m) for m in recent_messages(db, room=room_or_default(room), limit=limit)]


def _load_history(room: str) -> list[ChatMessage]:
    db = SessionLocal()
    try:
        return [to_chat_message(m) for m in recent_messages(db, room=room, limit=settings.chat_history_limit)]
    finally:
        db.close()


def _persist(payload: OutgoingMessage) -> ChatMessage:
    db = SessionLocal()
    try:
        msg: Message = save_message(db, payload)
        return to_chat_message(msg)
    finally:
        db.close()


async def _on_join(ws: WebSocket, data: Any) -> None:
    room = room_or_default(data)
    # Join only after history is read so a concurrent message arrives once, after it
    history = await anyio.to_thread.run_sync(_load_history, room)
    rooms.join(room, ws)
    logger.info("Socket %s joined room %s", id(ws), room)
    await rooms.emit(ws, "message-history", history)


async def _on_send(ws: WebSocket, data: Any) -> None:
    try:
        payload = OutgoingMessage.model_validate(data if isinstance(data, dict) else {})
        saved = await anyio.to_thread.run_sync(_persist, payload)
    except (SchemaError, ValidationError):
        await rooms.emit(ws, "error", {"message": "Missing required fields"})
        return
    # Persisted before broadcast, so room order follows creation order
    await rooms.broadcast(saved.room, "receive-message", saved)


_HANDLERS = {
    "join-room": _on_join,
    "send-message": _on_send,
}


@router.websocket("/ws")
async def chat_socket(ws: WebSocket) -> None:
    await ws.accept()
    logger.info("Socket %s connected", id(ws))
    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                break
            try:
                frame = SocketEvent.model_validate(json.loads(message["text"]))
            except (KeyError, TypeError, json.JSONDecodeError, SchemaError):
                await rooms.emit(ws, "error", {"message": "Malformed event"})
                continue

            handler = _HANDLERS.get(frame.event)
            if handler is None:
                await rooms.emit(ws, "error", {"message": f"Unknown event: {frame.event}"})
                continue

            try:
                await handler(ws, frame.data)
            except Exception:
                logger.exception("Failed to handle %s", frame.event)
                await rooms.emit(ws, "error", {"message": "Failed to process event"})
    except WebSocketDisconnect:
        pass
    finally:
        rooms.disconnect(ws)
        logger.info("Socket %s disconnected", id(ws))
