from __future__ import annotations

from datetime import datetime
from typing import Any

from huequitas.schemas.base import CamelModel


class ChatMessage(CamelModel):
    id: int
    user_id: str
    user_name: str
    message: str
    room: str
    created_at: datetime


class OutgoingMessage(CamelModel):
    """Payload of a ``send-message`` event."""

    user_id: str | None = None
    user_name: str | None = None
    message: str | None = None
    room: str | None = None


class SocketEvent(CamelModel):
    event: str
    data: Any = None
