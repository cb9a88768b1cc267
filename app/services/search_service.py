from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from sqlalchemy import Float, cast, func, null, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.copropriete import Copropriete
from app.schemas.search import SearchResult
from app.services.geo import BoundingBox, distance_expr
from app.services.geocoding import geocode_async
from app.services.formatting import round_int

"""
Search Service.

Rôle (fonctionnel) :
- Recherche d’une copropriété par adresse, en combinant :
  1) une recherche géographique (100 m autour du point saisi ou géocodé via BAN), triée par distance,
  2) une recherche textuelle (chaque mot doit apparaître dans l’adresse ou la commune,
     un code postal à 5 chiffres est exigé tel quel), triée par score.
- Fusion : résultats géo d’abord, dédoublonnage par id, 30 résultats maximum.
"""

log = logging.getLogger("app.search")

MIN_QUERY_LENGTH = 3
RADIUS_M = 100
MAX_GEO_RESULTS = 30
MAX_TEXT_RESULTS = 20
MAX_RESULTS = 30

_STRIP_RE = re.compile(r"[^a-z0-9àâäéèêëïîôùûüÿçœæ\s-]")
_POSTAL_RE = re.compile(r"^\d{5}$")

_RESULT_COLUMNS = (
    Copropriete.id,
    Copropriete.slug,
    Copropriete.adresse_reference,
    Copropriete.commune_adresse,
    Copropriete.code_postal,
    Copropriete.nom_usage,
    Copropriete.score_global,
    Copropriete.nb_lots_habitation,
)


@dataclass(frozen=True)
class SearchTerms:
    words: List[str]
    postal_code: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.words and not self.postal_code


def parse_search_terms(q: str) -> SearchTerms:
    """Normalise la saisie : minuscules, caractères parasites retirés, code postal isolé."""
    cleaned = _STRIP_RE.sub("", q.lower())
    words = [w for w in cleaned.split() if w]
    postal = next((w for w in words if _POSTAL_RE.match(w)), None)
    return SearchTerms(words=[w for w in words if not _POSTAL_RE.match(w)], postal_code=postal)


def should_search(q: Optional[str], lat: Optional[float]) -> bool:
    return bool(q and len(q) >= MIN_QUERY_LENGTH) or lat is not None


async def search_by_radius(db: AsyncSession, lat: float, lon: float) -> List[Any]:
    box = BoundingBox.around(lat, lon, RADIUS_M)
    distance = distance_expr(lat, lon, Copropriete.latitude, Copropriete.longitude).label("distance_m")
    stmt = (
        select(*_RESULT_COLUMNS, distance)
        .where(box.where(Copropriete.latitude, Copropriete.longitude))
        .order_by(distance.asc())
        .limit(MAX_GEO_RESULTS)
    )
    return list((await db.execute(stmt)).all())


async def search_by_text(db: AsyncSession, q: str) -> List[Any]:
    terms = parse_search_terms(q)
    if terms.is_empty:
        return []

    conditions = []
    for word in terms.words:
        pattern = f"%{word}%"
        conditions.append(
            or_(
                func.lower(Copropriete.adresse_reference).like(pattern),
                func.lower(Copropriete.commune_adresse).like(pattern),
            )
        )
    if terms.postal_code:
        conditions.append(Copropriete.code_postal == terms.postal_code)

    stmt = (
        select(*_RESULT_COLUMNS, cast(null(), Float).label("distance_m"))
        .where(*conditions)
        .order_by(Copropriete.score_global.desc().nulls_last())
        .limit(MAX_TEXT_RESULTS)
    )
    return list((await db.execute(stmt)).all())


def merge_results(*groups: Iterable[Any], limit: int = MAX_RESULTS) -> List[SearchResult]:
    """Concatène les groupes dans l’ordre, garde la première occurrence de chaque id."""
    seen: set[int] = set()
    out: List[SearchResult] = []
    for group in groups:
        for row in group:
            if row.id in seen:
                continue
            seen.add(row.id)
            out.append(
                SearchResult(
                    id=row.id,
                    slug=row.slug,
                    adresse=row.adresse_reference,
                    commune=row.commune_adresse,
                    code_postal=row.code_postal,
                    nom_usage=row.nom_usage,
                    score_global=row.score_global,
                    nb_lots=row.nb_lots_habitation,
                    distance=round_int(row.distance_m) if row.distance_m is not None else None,
                )
            )
    return out[:limit]


async def search(
    db: AsyncSession,
    q: Optional[str],
    lat: Optional[float] = None,
    lon: Optional[float] = None,
) -> List[SearchResult]:
    q = q.strip() if q else None
    if not should_search(q, lat):
        return []

    if lat is None and q:
        point = await geocode_async(q)
        if point is not None:
            lat, lon = point.lat, point.lon

    geo_rows: List[Any] = []
    if lat is not None and lon is not None:
        geo_rows = await search_by_radius(db, lat, lon)

    text_rows: List[Any] = await search_by_text(db, q) if q else []

    results = merge_results(geo_rows, text_rows)
    log.info("search", extra={"query": q, "count": len(results)})
    return results
