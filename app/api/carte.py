from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import MAP_CACHE_CONTROL
from app.core.errors import AppHTTPException
from app.db.session import get_db
from app.schemas.carte import HeatmapOut, MapPointsOut
from app.services import carte_service
from app.services.geo import BoundingBox, parse_bounds

"""
API Carte.

Rôle (fonctionnel) :
- Points de la vue courante (bounds = south,west,north,east) avec filtres score / syndic / période.
- Heatmap de la vue (points bruts ou grille agrégée).
- Réponses cachables côté CDN (5 min, revalidation en arrière-plan 10 min).
"""

router = APIRouter(prefix="/carte", tags=["carte"])


def _require_bounds(bounds: Optional[str]) -> BoundingBox:
    box = parse_bounds(bounds)
    if box is None:
        raise AppHTTPException(
            400,
            "INVALID_BOUNDS",
            "Paramètre bounds manquant ou invalide (south,west,north,east)",
            details={"bounds": bounds},
        )
    return box


@router.get("/points", response_model=MapPointsOut)
async def points(
    response: Response,
    bounds: Optional[str] = None,
    score_min: Optional[float] = Query(None, alias="scoreMin"),
    score_max: Optional[float] = Query(None, alias="scoreMax"),
    syndic: Optional[str] = None,
    periode: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    box = _require_bounds(bounds)
    filters = carte_service.MapFilters(
        score_min=score_min,
        score_max=score_max,
        syndic=carte_service.split_csv(syndic),
        periode=carte_service.split_csv(periode),
    )
    out = await carte_service.map_points(db, box, filters)
    response.headers["Cache-Control"] = MAP_CACHE_CONTROL
    return out


@router.get("/heatmap", response_model=HeatmapOut)
async def heatmap(
    response: Response,
    bounds: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    box = _require_bounds(bounds)
    out = await carte_service.heatmap(db, box)
    response.headers["Cache-Control"] = MAP_CACHE_CONTROL
    return out
