from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from huequitas.core import validators
from huequitas.core.deps import get_current_user
from huequitas.db.session import get_db
from huequitas.models.users import UserAuth, UserProfile
from huequitas.schemas.users import ProfileResponse, ProfileSetup, ProfileUpdate
from huequitas.services.preferences import apply_preferences, profile_preferences

router = APIRouter(prefix="/profile", tags=["profile"])


def _ensure_profile(db: Session, user: UserAuth) -> UserProfile:
    profile = db.get(UserProfile, user.id)
    if not profile:
        profile = UserProfile(user_id=user.id, name=user.email.split("@")[0], food_types="")
    return profile


def _to_profile_response(user: UserAuth, profile: UserProfile) -> ProfileResponse:
    return ProfileResponse(
        id=user.id,
        email=user.email,
        name=profile.name,
        preferences=profile_preferences(profile),
        is_profile_complete=profile.is_profile_complete,
        created_at=user.created_at,
    )


@router.get("", response_model=ProfileResponse)
def get_profile(
    current: UserAuth = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    return _to_profile_response(current, _ensure_profile(db, current))


@router.put("", response_model=ProfileResponse)
def update_profile(
    payload: ProfileUpdate,
    current: UserAuth = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    profile = _ensure_profile(db, current)

    if payload.name is not None:
        profile.name = validators.validate_name(payload.name)
    if payload.preferences is not None:
        apply_preferences(profile, payload.preferences, partial=True)

    db.add(profile)
    db.commit()
    db.refresh(profile)
    return _to_profile_response(current, profile)


@router.post("/complete-setup", response_model=ProfileResponse)
def complete_setup(
    payload: ProfileSetup,
    current: UserAuth = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    profile = _ensure_profile(db, current)
    apply_preferences(profile, payload.preferences)
    profile.is_profile_complete = True

    db.add(profile)
    db.commit()
    db.refresh(profile)
    return _to_profile_response(current, profile)
