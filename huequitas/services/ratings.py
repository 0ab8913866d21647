from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from huequitas.models.restaurants import Restaurant
from huequitas.models.reviews import Review

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")


def mean_rating(ratings: list[int]) -> float:
    """Mean of integer ratings rounded half-up to two decimals; 0.0 for no ratings."""
    if not ratings:
        return 0.0
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return float(mean.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def recompute_restaurant_rating(db: Session, *, restaurant_id: str) -> Restaurant | None:
    """Recompute ``rating``/``total_ratings`` from the full current review set.

    Always a full recompute, so any earlier drift is corrected on the next write.
    """

    ratings = list(db.scalars(select(Review.rating).where(Review.restaurant_id == restaurant_id)).all())

    restaurant = db.get(Restaurant, restaurant_id)
    if not restaurant:
        return None

    restaurant.rating = mean_rating(ratings)
    restaurant.total_ratings = len(ratings)
    db.add(restaurant)
    db.commit()
    logger.info(
        "Restaurant %s rating -> %.2f (%d reviews)", restaurant_id, restaurant.rating, restaurant.total_ratings
    )
    return restaurant
