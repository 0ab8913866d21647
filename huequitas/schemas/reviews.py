from __future__ import annotations

from datetime import datetime
from typing import Any

from huequitas.schemas.base import CamelModel


class ReviewCreate(CamelModel):
    restaurant_id: str | None = None
    # Checked by validate_rating so that the message is field-specific
    rating: Any = None
    comment: str | None = None
    image: str | None = None


class ReviewUpdate(CamelModel):
    rating: Any = None
    comment: str | None = None
    image: str | None = None


class ReviewResponse(CamelModel):
    id: str
    restaurant_id: str
    user_id: str
    user_name: str | None
    rating: int
    comment: str | None
    image: str | None
    created_at: datetime
    updated_at: datetime
