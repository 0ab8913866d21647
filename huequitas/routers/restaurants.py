from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from huequitas.core import validators
from huequitas.core.deps import TokenUser, get_token_user
from huequitas.core.errors import NotFoundError
from huequitas.db.session import get_db
from huequitas.models.enums import Location
from huequitas.models.restaurants import Restaurant
from huequitas.models.reviews import Review
from huequitas.schemas.base import MessageResponse
from huequitas.schemas.restaurants import (
    Coordinates,
    RestaurantCreate,
    RestaurantLocation,
    RestaurantResponse,
    RestaurantUpdate,
)
from huequitas.services.likes import delete_likes_for_restaurant

router = APIRouter(prefix="/restaurants", tags=["restaurants"])
logger = logging.getLogger(__name__)


def _to_restaurant_response(r: Restaurant) -> RestaurantResponse:
    coordinates = Coordinates(lat=r.lat, lng=r.lng) if r.lat is not None and r.lng is not None else None
    return RestaurantResponse(
        id=r.id,
        name=r.name,
        description=r.description,
        address=r.address,
        cuisine=r.cuisine,
        image=r.image,
        location=RestaurantLocation(sector=r.sector, coordinates=coordinates),
        rating=r.rating,
        total_ratings=r.total_ratings,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def get_restaurant_or_404(db: Session, restaurant_id: str) -> Restaurant:
    restaurant = db.get(Restaurant, validators.validate_id(restaurant_id))
    if not restaurant:
        raise NotFoundError("Restaurant not found")
    return restaurant


def _apply_fields(restaurant: Restaurant, payload: RestaurantCreate, fields: set[str]) -> None:
    """Copy the given payload fields onto the row; rating/total_ratings are never client-writable."""
    if "name" in fields:
        restaurant.name = validators.require(payload.name, "Restaurant name").strip()
    for attr in ("description", "address"):
        if attr in fields:
            value = getattr(payload, attr)
            setattr(restaurant, attr, (value or "").strip() or None)
    if "cuisine" in fields:
        restaurant.cuisine = (payload.cuisine or "").strip().lower() or None
    if "image" in fields:
        image = payload.image
        restaurant.image = validators.validate_image(image) if image and image.startswith("data:") else image
    if "location" in fields:
        loc = payload.location
        restaurant.sector = loc.sector.value if loc and loc.sector else None
        restaurant.lat = loc.coordinates.lat if loc and loc.coordinates else None
        restaurant.lng = loc.coordinates.lng if loc and loc.coordinates else None


@router.get("", response_model=list[RestaurantResponse])
def list_restaurants(
    db: Session = Depends(get_db),
    cuisines: str | None = Query(default=None, max_length=500),
    location: Location | None = Query(default=None),
) -> list[RestaurantResponse]:
    stmt = select(Restaurant)

    wanted = [c.strip().lower() for c in (cuisines or "").split(",") if c.strip()]
    if wanted:
        stmt = stmt.where(func.lower(Restaurant.cuisine).in_(wanted))
    if location:
        stmt = stmt.where(Restaurant.sector == location.value)

    items = db.scalars(stmt.order_by(Restaurant.created_at.desc())).all()
    return [_to_restaurant_response(r) for r in items]


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
def get_restaurant(restaurant_id: str, db: Session = Depends(get_db)) -> RestaurantResponse:
    return _to_restaurant_response(get_restaurant_or_404(db, restaurant_id))


@router.post("", response_model=RestaurantResponse, status_code=201)
def create_restaurant(
    payload: RestaurantCreate,
    current: TokenUser = Depends(get_token_user),
    db: Session = Depends(get_db),
) -> RestaurantResponse:
    restaurant = Restaurant(name="")
    _apply_fields(restaurant, payload, payload.model_fields_set | {"name"})

    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    logger.info("Restaurant %s created by %s", restaurant.id, current.user_id)
    return _to_restaurant_response(restaurant)


@router.put("/{restaurant_id}", response_model=RestaurantResponse)
def update_restaurant(
    restaurant_id: str,
    payload: RestaurantUpdate,
    current: TokenUser = Depends(get_token_user),
    db: Session = Depends(get_db),
) -> RestaurantResponse:
    restaurant = get_restaurant_or_404(db, restaurant_id)
    _apply_fields(restaurant, payload, payload.model_fields_set)

    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    return _to_restaurant_response(restaurant)


@router.delete("/{restaurant_id}", response_model=MessageResponse)
def delete_restaurant(
    restaurant_id: str,
    current: TokenUser = Depends(get_token_user),
    db: Session = Depends(get_db),
) -> MessageResponse:
    restaurant = get_restaurant_or_404(db, restaurant_id)
    rid = restaurant.id

    db.delete(restaurant)
    # Cascade: reviews first, then likes
    reviews_deleted = db.execute(delete(Review).where(Review.restaurant_id == rid)).rowcount
    likes_deleted = delete_likes_for_restaurant(db, restaurant_id=rid)
    db.commit()

    logger.info("Restaurant %s deleted by %s (%s reviews, %s likes)", rid, current.user_id, reviews_deleted, likes_deleted)
    return MessageResponse(message="Restaurant deleted successfully")
