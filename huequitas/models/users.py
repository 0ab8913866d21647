from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from huequitas.db.base import Base


class UserAuth(Base):
    __tablename__ = "users_auth"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    # Password reset; cleared once consumed, stale after reset_token_expiry
    reset_code: Mapped[str | None] = mapped_column(String(6), nullable=True)
    reset_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reset_token_expiry: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    profile: Mapped["UserProfile"] = relationship(back_populates="user", uselist=False, cascade="all, delete-orphan")

    def clear_reset(self) -> None:
        self.reset_code = None
        self.reset_token = None
        self.reset_token_expiry = None


class UserProfile(Base):
    __tablename__ = "users_profile"

    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users_auth.id"), primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    # Comma-separated FoodType values, e.g. "italiana,mariscos"
    food_types: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    location: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_profile_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user: Mapped[UserAuth] = relationship(back_populates="profile")
