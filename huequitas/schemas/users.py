from __future__ import annotations

from datetime import datetime

from pydantic import Field

from huequitas.models.enums import FoodType, Location
from huequitas.schemas.base import CamelModel


class Preferences(CamelModel):
    food_types: list[FoodType] = Field(default_factory=list)
    location: Location | None = None


class ProfileUpdate(CamelModel):
    name: str | None = None
    preferences: Preferences | None = None


class ProfileSetup(CamelModel):
    preferences: Preferences


class ProfileResponse(CamelModel):
    id: str
    email: str
    name: str
    preferences: Preferences
    is_profile_complete: bool
    created_at: datetime
