from __future__ import annotations

from huequitas.models.enums import FoodType
from huequitas.models.users import UserProfile
from huequitas.schemas.users import Preferences


def parse_food_types(csv: str) -> list[FoodType]:
    return [FoodType(c) for c in (csv or "").split(",") if c.strip()]


def food_types_to_csv(food_types: list[FoodType]) -> str:
    return ",".join(sorted({f.value for f in food_types}))


def apply_preferences(profile: UserProfile, prefs: Preferences, *, partial: bool = False) -> None:
    """With ``partial`` only the keys present in the request body are written."""
    fields = prefs.model_fields_set if partial else {"food_types", "location"}
    if "food_types" in fields:
        profile.food_types = food_types_to_csv(prefs.food_types)
    if "location" in fields:
        profile.location = prefs.location.value if prefs.location else None


def profile_preferences(profile: UserProfile) -> Preferences:
    return Preferences(food_types=parse_food_types(profile.food_types), location=profile.location)
