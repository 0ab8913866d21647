from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from huequitas.models.likes import Like

logger = logging.getLogger(__name__)


def _dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    elif dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    else:
        dialect_insert = insert
    return dialect_insert


def insert_like_if_absent(db: Session, *, restaurant_id: str, user_id: str) -> bool:
    """Insert a like unless one already exists for the pair. Returns True if a row was written.

    A concurrent insert of the same pair is absorbed by the unique key instead of raising.
    """
    stmt = _dialect_insert(db)(Like).values(id=str(uuid.uuid4()), restaurant_id=restaurant_id, user_id=user_id)
    if hasattr(stmt, "on_conflict_do_nothing"):
        stmt = stmt.on_conflict_do_nothing(index_elements=["restaurant_id", "user_id"])
    try:
        res = db.execute(stmt)
        db.commit()
    except IntegrityError:
        # Dialects without ON CONFLICT support
        db.rollback()
        return False
    return bool(res.rowcount)


def is_liked(db: Session, *, restaurant_id: str, user_id: str) -> bool:
    stmt = select(Like.id).where(Like.restaurant_id == restaurant_id, Like.user_id == user_id)
    return db.scalar(stmt) is not None


def toggle_like(db: Session, *, restaurant_id: str, user_id: str) -> bool:
    """Flip the user's like on a restaurant. Returns the resulting state (True = liked)."""
    existing = db.scalar(select(Like).where(Like.restaurant_id == restaurant_id, Like.user_id == user_id))
    if existing:
        db.delete(existing)
        db.commit()
        return False

    inserted = insert_like_if_absent(db, restaurant_id=restaurant_id, user_id=user_id)
    if not inserted:
        logger.info("Like for %s by %s already present", restaurant_id, user_id)
    return True


def delete_likes_for_restaurant(db: Session, *, restaurant_id: str) -> int:
    res = db.execute(delete(Like).where(Like.restaurant_id == restaurant_id))
    return int(res.rowcount or 0)
