from __future__ import annotations

from enum import Enum


class Location(str, Enum):
    norte = "Norte"
    centro = "Centro"
    sur = "Sur"
    valles = "Valles"


class FoodType(str, Enum):
    mexicana = "mexicana"
    italiana = "italiana"
    japonesa = "japonesa"
    china = "china"
    americana = "americana"
    mariscos = "mariscos"
    vegetariana = "vegetariana"
    postres = "postres"
    cafeteria = "cafeteria"
