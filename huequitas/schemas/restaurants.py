from __future__ import annotations

from datetime import datetime

from pydantic import Field

from huequitas.models.enums import Location
from huequitas.schemas.base import CamelModel


class Coordinates(CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class RestaurantLocation(CamelModel):
    sector: Location | None = None
    coordinates: Coordinates | None = None


class RestaurantCreate(CamelModel):
    name: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    address: str | None = Field(default=None, max_length=250)
    cuisine: str | None = Field(default=None, max_length=80)
    image: str | None = None
    location: RestaurantLocation | None = None


class RestaurantUpdate(RestaurantCreate):
    pass


class RestaurantResponse(CamelModel):
    id: str
    name: str
    description: str | None
    address: str | None
    cuisine: str | None
    image: str | None
    location: RestaurantLocation
    rating: float
    total_ratings: int
    created_at: datetime
    updated_at: datetime


