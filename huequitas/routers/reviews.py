from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from huequitas.core import validators
from huequitas.core.deps import TokenUser, get_token_user
from huequitas.core.errors import AuthorizationError, NotFoundError, ValidationError
from huequitas.db.session import get_db
from huequitas.models.reviews import Review
from huequitas.routers.restaurants import get_restaurant_or_404
from huequitas.schemas.base import MessageResponse
from huequitas.schemas.reviews import ReviewCreate, ReviewResponse, ReviewUpdate
from huequitas.services.ratings import recompute_restaurant_rating

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["reviews"])


def _to_review_response(r: Review) -> ReviewResponse:
    return ReviewResponse(
        id=r.id,
        restaurant_id=r.restaurant_id,
        user_id=r.user_id,
        user_name=r.user_name,
        rating=r.rating,
        comment=r.comment,
        image=r.image,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _get_own_review(db: Session, review_id: str, current: TokenUser) -> Review:
    review = db.get(Review, validators.validate_id(review_id))
    if not review:
        raise NotFoundError("Review not found")
    if review.user_id != current.user_id:
        logger.warning("User %s tried to modify review %s of %s", current.user_id, review.id, review.user_id)
        raise AuthorizationError("You can only modify your own reviews")
    return review


@router.post("", response_model=ReviewResponse, status_code=201)
def create_review(
    payload: ReviewCreate,
    current: TokenUser = Depends(get_token_user),
    db: Session = Depends(get_db),
) -> ReviewResponse:
    if not payload.restaurant_id or payload.rating in (None, ""):
        raise ValidationError("Restaurant ID and rating are required")

    restaurant = get_restaurant_or_404(db, payload.restaurant_id)
    rating = validators.validate_rating(payload.rating)
    comment = validators.validate_review_comment(payload.comment)
    image = validators.validate_image(payload.image)

    review = Review(
        restaurant_id=restaurant.id,
        user_id=current.user_id,
        user_name=current.name,
        rating=rating,
        comment=comment,
        image=image,
    )
    db.add(review)
    db.commit()
    db.refresh(review)

    recompute_restaurant_rating(db, restaurant_id=restaurant.id)

    return _to_review_response(review)


@router.get("/{restaurant_id}", response_model=list[ReviewResponse])
def list_reviews(restaurant_id: str, db: Session = Depends(get_db)) -> list[ReviewResponse]:
    stmt = (
        select(Review)
        .where(Review.restaurant_id == validators.validate_id(restaurant_id))
        .order_by(Review.created_at.desc())
    )
    return [_to_review_response(r) for r in db.scalars(stmt).all()]


@router.put("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: str,
    payload: ReviewUpdate,
    current: TokenUser = Depends(get_token_user),
    db: Session = Depends(get_db),
) -> ReviewResponse:
    review = _get_own_review(db, review_id, current)

    # Validate everything before touching the row
    fields = payload.model_fields_set
    rating = validators.validate_rating(payload.rating) if "rating" in fields else review.rating
    comment = validators.validate_review_comment(payload.comment) if "comment" in fields else review.comment
    image = validators.validate_image(payload.image) if "image" in fields else review.image

    review.rating = rating
    review.comment = comment
    review.image = image
    db.add(review)
    db.commit()
    db.refresh(review)

    recompute_restaurant_rating(db, restaurant_id=review.restaurant_id)

    return _to_review_response(review)


@router.delete("/{review_id}", response_model=MessageResponse)
def delete_review(
    review_id: str,
    current: TokenUser = Depends(get_token_user),
    db: Session = Depends(get_db),
) -> MessageResponse:
    review = _get_own_review(db, review_id, current)
    restaurant_id = review.restaurant_id

    db.delete(review)
    db.commit()

    recompute_restaurant_rating(db, restaurant_id=restaurant_id)

    return MessageResponse(message="Review deleted successfully")
