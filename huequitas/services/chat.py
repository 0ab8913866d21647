"""Room membership, message history and broadcast for the realtime chat.

Membership is process-local: a restart drops every room and clients rejoin.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.orm import Session

from huequitas.core.errors import ValidationError
from huequitas.models.messages import Message
from huequitas.schemas.chat import ChatMessage, OutgoingMessage

logger = logging.getLogger(__name__)

DEFAULT_ROOM = "general"


def room_or_default(room: Any) -> str:
    if isinstance(room, str) and room.strip():
        return room.strip()
    return DEFAULT_ROOM


def to_chat_message(m: Message) -> ChatMessage:
    return ChatMessage(
        id=m.id,
        user_id=m.user_id,
        user_name=m.user_name,
        message=m.message,
        room=m.room,
        created_at=m.created_at,
    )


def recent_messages(db: Session, *, room: str, limit: int) -> list[Message]:
    """Last ``limit`` messages of a room, oldest first."""
    newest_first = db.scalars(
        select(Message).where(Message.room == room).order_by(Message.id.desc()).limit(limit)
    ).all()
    return list(reversed(newest_first))


def save_message(db: Session, payload: OutgoingMessage) -> Message:
    text = (payload.message or "").strip()
    if not payload.user_id or not payload.user_name or not text:
        raise ValidationError("Missing required fields")

    msg = Message(
        user_id=payload.user_id,
        user_name=payload.user_name,
        message=text,
        room=room_or_default(payload.room),
    )
    db.add(msg)
    db.commit()
    db.refresh(msg)
    return msg


class RoomManager:
    """Tracks which sockets joined which rooms and fans events out to them."""

    def __init__(self) -> None:
        self._rooms: dict[str, set[WebSocket]] = defaultdict(set)

    def join(self, room: str, ws: WebSocket) -> None:
        self._rooms[room].add(ws)

    def disconnect(self, ws: WebSocket) -> None:
        for room in list(self._rooms):
            members = self._rooms[room]
            members.discard(ws)
            if not members:
                del self._rooms[room]

    def members(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    async def emit(self, ws: WebSocket, event: str, data: Any) -> None:
        await ws.send_json({"event": event, "data": jsonable_encoder(data, by_alias=True)})

    async def broadcast(self, room: str, event: str, data: Any) -> None:
        """Send to every socket in the room; sockets that fail are dropped from all rooms."""
        payload = {"event": event, "data": jsonable_encoder(data, by_alias=True)}
        for ws in list(self._rooms.get(room, ())):
            try:
                await ws.send_json(payload)
            except Exception:
                logger.warning("Dropping dead socket from room %s", room, exc_info=True)
                self.disconnect(ws)


rooms = RoomManager()
