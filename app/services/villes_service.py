from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AppHTTPException
from app.models.copropriete import Copropriete
from app.schemas.villes import (
    CommuneItem,
    DepartementItem,
    DepartementOut,
    VilleCopro,
    VilleOut,
    VilleStats,
)
from app.services.formatting import display_name, round_int
from app.services.slugs import make_dept_slug, make_ville_slug, parse_dept_slug, parse_ville_slug

"""
Villes Service.

Rôle (fonctionnel) :
- Page commune : statistiques (total, score moyen, bon / moyen / attention) et copropriétés
  triées par score (option : filtre code postal pour les communes à plusieurs CP).
- Index des départements (nom le plus fréquent, volume, score moyen).
- Page département : communes avec slug, volume et score moyen.
"""

MAX_VILLE_COPROS = 1000


def _avg(value) -> Optional[int]:
    return round_int(float(value)) if value is not None else None


def _mode(col):
    return func.mode().within_group(col)


async def ville(db: AsyncSession, slug: str, code_postal: Optional[str] = None) -> VilleOut:
    code = parse_ville_slug(slug)
    if not code:
        raise AppHTTPException(400, "INVALID_SLUG", "Slug de commune invalide", details={"slug": slug})

    conditions = [Copropriete.code_officiel_commune == code]
    if code_postal:
        conditions.append(Copropriete.code_postal == code_postal)

    score = Copropriete.score_global
    stats = (
        await db.execute(
            select(
                func.count().label("total"),
                func.avg(score).label("avg_score"),
                func.count().filter(score >= 70).label("bon"),
                func.count().filter(score >= 40, score < 70).label("moyen"),
                func.count().filter(score < 40).label("attention"),
            ).where(*conditions)
        )
    ).one()

    nom = (
        await db.execute(
            select(Copropriete.nom_officiel_commune)
            .where(Copropriete.code_officiel_commune == code, Copropriete.nom_officiel_commune.is_not(None))
            .limit(1)
        )
    ).scalar_one_or_none()

    if not stats.total or nom is None:
        raise AppHTTPException(404, "VILLE_NOT_FOUND", "Commune introuvable", details={"slug": slug})

    rows = (
        await db.execute(
            select(
                Copropriete.id,
                Copropriete.slug,
                Copropriete.adresse_reference,
                Copropriete.nom_usage,
                Copropriete.code_postal,
                Copropriete.score_global,
                Copropriete.nb_lots_habitation,
                Copropriete.type_syndic,
                Copropriete.periode_construction,
            )
            .where(*conditions)
            .order_by(score.desc().nulls_last(), Copropriete.id.asc())
            .limit(MAX_VILLE_COPROS)
        )
    ).all()

    return VilleOut(
        code_commune=code,
        nom_commune=nom,
        code_postal=code_postal,
        stats=VilleStats(
            total=stats.total,
            score_moyen=_avg(stats.avg_score),
            nb_bon=stats.bon,
            nb_moyen=stats.moyen,
            nb_attention=stats.attention,
        ),
        copros=[
            VilleCopro(
                id=r.id,
                slug=r.slug,
                nom=display_name(r.nom_usage, r.adresse_reference),
                adresse_reference=r.adresse_reference,
                code_postal=r.code_postal,
                score_global=r.score_global,
                nb_lots_habitation=r.nb_lots_habitation,
                type_syndic=r.type_syndic,
                periode_construction=r.periode_construction,
            )
            for r in rows
        ],
    )


async def departements(db: AsyncSession) -> List[DepartementItem]:
    code = Copropriete.code_officiel_departement
    rows = (
        await db.execute(
            select(
                code.label("code"),
                _mode(Copropriete.nom_officiel_departement).label("nom"),
                func.count().label("total"),
                func.avg(Copropriete.score_global).label("avg_score"),
            )
            .where(code.is_not(None), Copropriete.nom_officiel_departement.is_not(None))
            .group_by(code)
            .order_by(code)
        )
    ).all()
    return [
        DepartementItem(
            code=r.code,
            nom=r.nom,
            slug=make_dept_slug(r.nom or "", r.code),
            count=r.total,
            score_moyen=_avg(r.avg_score),
        )
        for r in rows
    ]


async def departement(db: AsyncSession, slug: str) -> DepartementOut:
    code = parse_dept_slug(slug)
    if not code:
        raise AppHTTPException(400, "INVALID_SLUG", "Slug de département invalide", details={"slug": slug})

    info = (
        await db.execute(
            select(
                _mode(Copropriete.nom_officiel_departement).label("nom"),
                func.count().label("total"),
                func.avg(Copropriete.score_global).label("avg_score"),
            ).where(Copropriete.code_officiel_departement == code)
        )
    ).one()
    if not info.total:
        raise AppHTTPException(404, "DEPARTEMENT_NOT_FOUND", "Département introuvable", details={"slug": slug})

    nom_commune = func.initcap(_mode(Copropriete.nom_officiel_commune)).label("nom")
    rows = (
        await db.execute(
            select(
                Copropriete.code_officiel_commune.label("code"),
                nom_commune,
                func.count().label("total"),
                func.avg(Copropriete.score_global).label("avg_score"),
            )
            .where(
                Copropriete.code_officiel_departement == code,
                Copropriete.code_officiel_commune.is_not(None),
                Copropriete.nom_officiel_commune.is_not(None),
            )
            .group_by(Copropriete.code_officiel_commune)
            .order_by(nom_commune)
        )
    ).all()

    return DepartementOut(
        code=code,
        nom=info.nom,
        count=info.total,
        score_moyen=_avg(info.avg_score),
        communes=[
            CommuneItem(
                code=r.code,
                nom=r.nom,
                slug=make_ville_slug(r.nom or "", r.code),
                count=r.total,
                score_moyen=_avg(r.avg_score),
            )
            for r in rows
        ],
    )
