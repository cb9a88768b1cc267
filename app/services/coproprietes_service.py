from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import Numeric, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import copro_not_found
from app.models.copropriete import Copropriete
from app.models.dpe_logement import DpeLogement
from app.schemas.coproprietes import (
    BudgetTravauxOut,
    CoproBase,
    CoproDetail,
    NearbyCopro,
    ScoreQuartierOut,
    TimelineEventOut,
)
from app.services import dvf_service
from app.services.budget_travaux import estimer_pour_copro
from app.services.formatting import display_name, format_period, round_int, score_band
from app.services.geo import BoundingBox, distance_expr
from app.services.score_explanations import explain_all
from app.services.timeline import build_timeline

"""
Copropriétés Service.

Rôle (fonctionnel) :
- Résout une copropriété depuis son slug (un slug numérique est interprété comme un id).
- Assemble la fiche détaillée :
  - colonnes RNIC / scores / marché / DPE,
  - nom lisible + bucket de score + libellé de période,
  - explications par dimension, budget travaux estimé,
  - 5 copropriétés voisines (500 m), prix moyen communal et écart (%).
- Score de quartier (rayon paramétrable), timeline, comparateur.
"""

log = logging.getLogger("app.coproprietes")

NEARBY_RADIUS_M = 500
NEARBY_LIMIT = 5
DEFAULT_QUARTIER_RADIUS_M = 300
MAX_COMPARED = 5
MAX_TIMELINE_DPE = 50


async def get_by_slug(db: AsyncSession, slug: str) -> Copropriete:
    """Copropriété par slug (ou id si le slug est numérique) ; 404 COPRO_NOT_FOUND sinon."""
    if slug.isdigit():
        stmt = select(Copropriete).where(Copropriete.id == int(slug))
    else:
        stmt = select(Copropriete).where(Copropriete.slug == slug)
    copro = (await db.execute(stmt)).scalars().first()
    if copro is None:
        raise copro_not_found(slug)
    return copro


async def fetch_nearby(db: AsyncSession, copro: Copropriete) -> List[NearbyCopro]:
    if copro.latitude is None or copro.longitude is None:
        return []

    box = BoundingBox.around(copro.latitude, copro.longitude, NEARBY_RADIUS_M)
    distance = distance_expr(copro.latitude, copro.longitude, Copropriete.latitude, Copropriete.longitude)
    distance = distance.label("distance_m")
    stmt = (
        select(
            Copropriete.id,
            Copropriete.slug,
            Copropriete.adresse_reference,
            Copropriete.commune_adresse,
            Copropriete.code_postal,
            Copropriete.nom_usage,
            Copropriete.score_global,
            Copropriete.nb_lots_habitation,
            Copropriete.longitude,
            Copropriete.latitude,
            distance,
        )
        .where(box.where(Copropriete.latitude, Copropriete.longitude), Copropriete.id != copro.id)
        .order_by(distance.asc())
        .limit(NEARBY_LIMIT)
    )
    rows = (await db.execute(stmt)).all()
    return [
        NearbyCopro(
            id=r.id,
            slug=r.slug,
            nom=display_name(r.nom_usage, r.adresse_reference),
            adresse_reference=r.adresse_reference,
            commune_adresse=r.commune_adresse,
            code_postal=r.code_postal,
            score_global=r.score_global,
            nb_lots_habitation=r.nb_lots_habitation,
            latitude=r.latitude,
            longitude=r.longitude,
            distance_m=round_int(r.distance_m),
        )
        for r in rows
    ]


async def fetch_commune_avg_prix(db: AsyncSession, code_commune: Optional[str]) -> Optional[int]:
    if not code_commune:
        return None
    stmt = select(func.avg(Copropriete.marche_prix_m2)).where(
        Copropriete.code_officiel_commune == code_commune,
        Copropriete.marche_prix_m2.is_not(None),
    )
    value = (await db.execute(stmt)).scalar_one_or_none()
    return round_int(float(value)) if value is not None else None


def diff_pct(prix_m2: Optional[float], reference: Optional[float]) -> Optional[int]:
    """Écart (%) entre le prix local et la moyenne communale, arrondi à l’entier."""
    if not prix_m2 or not reference:
        return None
    return round_int((prix_m2 - reference) / reference * 100)


def _columns(copro: Any, model: type[CoproBase]) -> Dict[str, Any]:
    return {name: getattr(copro, name) for name in model.model_fields if hasattr(copro, name)}


async def build_detail(db: AsyncSession, copro: Copropriete) -> CoproDetail:
    voisines = await fetch_nearby(db, copro)
    commune_prix = await fetch_commune_avg_prix(db, copro.code_officiel_commune)
    budget = estimer_pour_copro(copro)

    data = _columns(copro, CoproDetail)
    data.update(
        nom=display_name(copro.nom_usage, copro.adresse_reference),
        score_band=score_band(copro.score_global),
        periode_label=format_period(copro.periode_construction),
        explications=explain_all(copro),
        budget_travaux=BudgetTravauxOut(
            postes=[vars(p) for p in budget.postes],
            total_min=budget.total_min,
            total_max=budget.total_max,
            fiabilite=budget.fiabilite,
        ),
        voisines=voisines,
        commune_prix_m2=commune_prix,
        diff_commune_pct=diff_pct(copro.marche_prix_m2, commune_prix),
    )
    return CoproDetail(**data)


def quartier_from_row(row: Any, rayon: int) -> Optional[ScoreQuartierOut]:
    """Convertit la ligne d’agrégats ; None si aucune copropriété scorée dans le rayon."""
    total = int(row.nb_copros or 0) if row is not None else 0
    if total == 0:
        return None
    return ScoreQuartierOut(
        score_moyen=float(row.score_moyen),
        score_median=round_int(float(row.score_median)),
        nb_copros=total,
        pct_bon=round_int(row.nb_bon / total * 100),
        pct_moyen=round_int(row.nb_moyen / total * 100),
        pct_attention=round_int(row.nb_attention / total * 100),
        rayon=rayon,
    )


async def score_quartier(
    db: AsyncSession,
    lat: float,
    lon: float,
    rayon: int = DEFAULT_QUARTIER_RADIUS_M,
) -> Optional[ScoreQuartierOut]:
    box = BoundingBox.around(lat, lon, rayon)
    score = Copropriete.score_global
    stmt = select(
        func.count().label("nb_copros"),
        func.round(cast(func.avg(score), Numeric), 1).label("score_moyen"),
        func.percentile_cont(0.5).within_group(score).label("score_median"),
        func.count().filter(score >= 70).label("nb_bon"),
        func.count().filter(score >= 40, score < 70).label("nb_moyen"),
        func.count().filter(score < 40).label("nb_attention"),
    ).where(
        box.where(Copropriete.latitude, Copropriete.longitude),
        score.is_not(None),
        distance_expr(lat, lon, Copropriete.latitude, Copropriete.longitude) <= rayon,
    )
    row = (await db.execute(stmt)).first()
    return quartier_from_row(row, rayon)


async def fetch_timeline(db: AsyncSession, copro: Copropriete) -> List[TimelineEventOut]:
    dvf_rows: List[Any] = []
    if copro.latitude is not None and copro.longitude is not None:
        dvf_rows = await dvf_service.fetch_transactions(db, copro.latitude, copro.longitude, limit=10)

    dpe_rows = (
        await db.execute(
            select(DpeLogement.date_dpe, DpeLogement.classe_dpe)
            .where(DpeLogement.numero_immatriculation_copropriete == copro.numero_immatriculation)
            .order_by(DpeLogement.date_dpe.desc())
            .limit(MAX_TIMELINE_DPE)
        )
    ).all()

    events = build_timeline(copro, dvf_rows, dpe_rows)
    return [TimelineEventOut(**e.as_dict()) for e in events]


def parse_slugs(value: str) -> List[str]:
    return [s.strip() for s in value.split(",") if s.strip()][:MAX_COMPARED]


async def compare(db: AsyncSession, slugs: List[str]) -> List[CoproBase]:
    """Copropriétés demandées, dans l’ordre des slugs ; les slugs inconnus sont ignorés."""
    if not slugs:
        return []
    rows = (await db.execute(select(Copropriete).where(Copropriete.slug.in_(slugs)))).scalars().all()
    by_slug = {c.slug: c for c in rows}
    return [CoproBase.model_validate(by_slug[s]) for s in slugs if s in by_slug]
