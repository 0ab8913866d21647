from __future__ import annotations

from huequitas.schemas.base import CamelModel


class LikeRequest(CamelModel):
    restaurant_id: str | None = None


class LikeToggleResponse(CamelModel):
    message: str
    liked: bool


class LikeStatusResponse(CamelModel):
    liked: bool
