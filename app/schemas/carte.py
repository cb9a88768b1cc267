from __future__ import annotations

from typing import List, Optional

from app.schemas.common import CamelModel

"""
Schemas Carte.

Rôle (fonctionnel) :
- Points de la carte interactive (une copropriété scorée et géolocalisée par point).
- Heatmap : points bruts ou cellules de grille moyennées (weight = nombre de copros agrégées).
"""


class MapPoint(CamelModel):
    lat: float
    lng: float
    score: int
    lots: int = 0
    slug: Optional[str] = None
    nom: str
    commune: Optional[str] = None
    code_postal: Optional[str] = None
    type_syndic: Optional[str] = None
    periode_construction: Optional[str] = None
    dpe_classe: Optional[str] = None


class MapPointsOut(CamelModel):
    points: List[MapPoint]
    total: int
    returned: int
    sampled: bool


class HeatmapPoint(CamelModel):
    lat: float
    lng: float
    score: int
    weight: int = 1


class HeatmapOut(CamelModel):
    points: List[HeatmapPoint]
    total: int
    clustered: bool
