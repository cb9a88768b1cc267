from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import and_, func
from sqlalchemy.sql.elements import ColumnElement

"""
Geo helpers.

Rôle (fonctionnel) :
- Approxime un rayon en mètres par une boîte lat/lon (filtre indexable en SQL).
- Construit l’expression SQL de distance haversine (mètres) pour trier / filtrer finement.
- Parse le paramètre “bounds” des endpoints carte (south,west,north,east).

Constantes calibrées pour la France métropolitaine (~46°N) :
1° de latitude ≈ 111 320 m, 1° de longitude ≈ 77 370 m.
"""

LAT_PER_METER = 1 / 111320
LON_PER_METER = 1 / 77370
EARTH_RADIUS_M = 6371000


@dataclass(frozen=True)
class BoundingBox:
    south: float
    west: float
    north: float
    east: float

    @classmethod
    def around(cls, lat: float, lon: float, radius_m: float) -> "BoundingBox":
        d_lat = radius_m * LAT_PER_METER
        d_lon = radius_m * LON_PER_METER
        return cls(south=lat - d_lat, west=lon - d_lon, north=lat + d_lat, east=lon + d_lon)

    def contains(self, lat: float, lon: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lon <= self.east

    def where(self, lat_col, lon_col) -> ColumnElement[bool]:
        """Clause SQL : colonnes non nulles et dans la boîte."""
        return and_(
            lat_col.between(self.south, self.north),
            lon_col.between(self.west, self.east),
            lat_col.is_not(None),
            lon_col.is_not(None),
        )


def parse_bounds(value: Optional[str]) -> Optional[BoundingBox]:
    """"south,west,north,east" -> BoundingBox, None si absent ou invalide."""
    if not value:
        return None
    parts = value.split(",")
    if len(parts) != 4:
        return None
    try:
        south, west, north, east = (float(p) for p in parts)
    except ValueError:
        return None
    if any(math.isnan(v) or math.isinf(v) for v in (south, west, north, east)):
        return None
    return BoundingBox(south=south, west=west, north=north, east=east)


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance en mètres (loi des cosinus sphérique, bornée comme en SQL)."""
    value = (
        math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.cos(math.radians(lon2) - math.radians(lon1))
        + math.sin(math.radians(lat1)) * math.sin(math.radians(lat2))
    )
    return EARTH_RADIUS_M * math.acos(min(1.0, value))


def distance_expr(lat: float, lon: float, lat_col, lon_col) -> ColumnElement[float]:
    """Expression SQL de distance (m) entre (lat, lon) et les colonnes données."""
    return EARTH_RADIUS_M * func.acos(
        func.least(
            1.0,
            func.cos(func.radians(lat)) * func.cos(func.radians(lat_col)) * func.cos(func.radians(lon_col) - func.radians(lon))
            + func.sin(func.radians(lat)) * func.sin(func.radians(lat_col)),
        )
    )
