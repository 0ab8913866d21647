from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from huequitas.core import validators
from huequitas.core.deps import TokenUser, get_token_user
from huequitas.core.errors import ValidationError
from huequitas.db.session import get_db
from huequitas.routers.restaurants import get_restaurant_or_404
from huequitas.schemas.likes import LikeRequest, LikeStatusResponse, LikeToggleResponse
from huequitas.services.likes import is_liked, toggle_like

router = APIRouter(tags=["likes"])


@router.post("/like", response_model=LikeToggleResponse)
def like_restaurant(
    payload: LikeRequest,
    current: TokenUser = Depends(get_token_user),
    db: Session = Depends(get_db),
) -> LikeToggleResponse:
    if not payload.restaurant_id:
        raise ValidationError("Restaurant ID is required")
    restaurant = get_restaurant_or_404(db, payload.restaurant_id)

    liked = toggle_like(db, restaurant_id=restaurant.id, user_id=current.user_id)
    return LikeToggleResponse(message="Restaurant liked" if liked else "Restaurant unliked", liked=liked)


@router.get("/likes/{restaurant_id}", response_model=LikeStatusResponse)
def like_status(
    restaurant_id: str,
    current: TokenUser = Depends(get_token_user),
    db: Session = Depends(get_db),
) -> LikeStatusResponse:
    liked = is_liked(db, restaurant_id=validators.validate_id(restaurant_id), user_id=current.user_id)
    return LikeStatusResponse(liked=liked)
