from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.copropriete import Copropriete
from app.schemas.carte import HeatmapOut, HeatmapPoint, MapPoint, MapPointsOut
from app.services.formatting import round_int
from app.services.geo import BoundingBox

"""
Carte Service.

Rôle (fonctionnel) :
- Points de la carte : copropriétés scorées et géolocalisées dans la vue (bounds), filtrables
  par score, type de syndic et période. Au-delà de 10 000 points : échantillon aléatoire.
- Heatmap : points bruts jusqu’à 5 000, sinon agrégation sur une grille 50 × 50 de la vue
  (score moyen par cellule).
"""

MAX_POINTS = 10_000
MAX_HEATMAP_POINTS = 5_000
GRID_SIZE = 50


@dataclass(frozen=True)
class MapFilters:
    score_min: Optional[float] = None
    score_max: Optional[float] = None
    syndic: List[str] = field(default_factory=list)
    periode: List[str] = field(default_factory=list)


def split_csv(value: Optional[str]) -> List[str]:
    return [v for v in (value or "").split(",") if v]


def _base_conditions(bounds: BoundingBox) -> list:
    return [
        Copropriete.latitude.between(bounds.south, bounds.north),
        Copropriete.longitude.between(bounds.west, bounds.east),
        Copropriete.score_global.is_not(None),
        Copropriete.latitude.is_not(None),
    ]


def map_conditions(bounds: BoundingBox, filters: MapFilters) -> list:
    conditions = _base_conditions(bounds)
    if filters.score_min is not None:
        conditions.append(Copropriete.score_global >= filters.score_min)
    if filters.score_max is not None:
        conditions.append(Copropriete.score_global <= filters.score_max)
    if filters.syndic:
        conditions.append(Copropriete.type_syndic.in_(filters.syndic))
    if filters.periode:
        conditions.append(Copropriete.periode_construction.in_(filters.periode))
    return conditions


async def map_points(db: AsyncSession, bounds: BoundingBox, filters: MapFilters) -> MapPointsOut:
    conditions = map_conditions(bounds, filters)

    total = (await db.execute(select(func.count()).select_from(Copropriete).where(*conditions))).scalar_one()

    stmt = select(
        Copropriete.latitude,
        Copropriete.longitude,
        Copropriete.score_global,
        Copropriete.nb_lots_habitation,
        Copropriete.slug,
        Copropriete.nom_usage,
        Copropriete.adresse_reference,
        Copropriete.commune,
        Copropriete.code_postal,
        Copropriete.type_syndic,
        Copropriete.periode_construction,
        Copropriete.dpe_classe_mediane,
    ).where(*conditions)

    sampled = total > MAX_POINTS
    if sampled:
        stmt = stmt.order_by(func.random()).limit(MAX_POINTS)

    rows = (await db.execute(stmt)).all()
    points = [
        MapPoint(
            lat=r.latitude,
            lng=r.longitude,
            score=r.score_global,
            lots=r.nb_lots_habitation or 0,
            slug=r.slug,
            nom=r.nom_usage or r.adresse_reference or "Copropriété",
            commune=r.commune,
            code_postal=r.code_postal,
            type_syndic=r.type_syndic,
            periode_construction=r.periode_construction,
            dpe_classe=r.dpe_classe_mediane,
        )
        for r in rows
    ]
    return MapPointsOut(points=points, total=total, returned=len(points), sampled=sampled)


async def heatmap(db: AsyncSession, bounds: BoundingBox) -> HeatmapOut:
    conditions = _base_conditions(bounds)
    total = (await db.execute(select(func.count()).select_from(Copropriete).where(*conditions))).scalar_one()

    lat_step = (bounds.north - bounds.south) / GRID_SIZE
    lng_step = (bounds.east - bounds.west) / GRID_SIZE

    # Vue plate (north == south ou east == west) : pas de grille possible
    if total <= MAX_HEATMAP_POINTS or lat_step == 0 or lng_step == 0:
        rows = (
            await db.execute(
                select(Copropriete.latitude, Copropriete.longitude, Copropriete.score_global)
                .where(*conditions)
                .limit(MAX_HEATMAP_POINTS)
            )
        ).all()
        points = [HeatmapPoint(lat=r.latitude, lng=r.longitude, score=r.score_global) for r in rows]
        return HeatmapOut(points=points, total=total, clustered=False)

    lat_cell = func.round(Copropriete.latitude / lat_step)
    lng_cell = func.round(Copropriete.longitude / lng_step)
    stmt = (
        select(
            lat_cell.label("lat_cell"),
            lng_cell.label("lng_cell"),
            func.avg(Copropriete.score_global).label("score"),
            func.count().label("cnt"),
        )
        .where(*conditions)
        .group_by(lat_cell, lng_cell)
    )
    rows = (await db.execute(stmt)).all()
    points = [
        HeatmapPoint(
            lat=float(r.lat_cell) * lat_step,
            lng=float(r.lng_cell) * lng_step,
            score=round_int(float(r.score)),
            weight=r.cnt,
        )
        for r in rows
    ]
    return HeatmapOut(points=points, total=total, clustered=True)
