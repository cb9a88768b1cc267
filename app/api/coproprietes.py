from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import ProAuthDep
from app.db.session import get_db
from app.schemas.coproprietes import (
    CoproDetail,
    DvfQuartersOut,
    DvfTransactionsOut,
    QuartierOut,
    TimelineOut,
)
from app.services import coproprietes_service, dvf_service

"""
API Copropriétés.

Rôle (fonctionnel) :
- Fiche détaillée d’une copropriété (slug ou id numérique).
- Score du quartier, timeline.
- Données DVF détaillées (accès pro, clé API) : transactions et moyennes trimestrielles.

Une copropriété sans coordonnées renvoie des listes vides (quartier = null) plutôt qu’une erreur.
"""

router = APIRouter(prefix="/coproprietes", tags=["coproprietes"])


@router.get("/{slug}", response_model=CoproDetail)
async def get_copropriete(slug: str, db: AsyncSession = Depends(get_db)):
    copro = await coproprietes_service.get_by_slug(db, slug)
    return await coproprietes_service.build_detail(db, copro)


@router.get("/{slug}/quartier", response_model=QuartierOut)
async def get_quartier(
    slug: str,
    rayon: int = Query(coproprietes_service.DEFAULT_QUARTIER_RADIUS_M, ge=50, le=2000),
    db: AsyncSession = Depends(get_db),
):
    copro = await coproprietes_service.get_by_slug(db, slug)
    if copro.latitude is None or copro.longitude is None:
        return QuartierOut(quartier=None)
    quartier = await coproprietes_service.score_quartier(db, copro.latitude, copro.longitude, rayon)
    return QuartierOut(quartier=quartier)


@router.get("/{slug}/timeline", response_model=TimelineOut)
async def get_timeline(slug: str, db: AsyncSession = Depends(get_db)):
    copro = await coproprietes_service.get_by_slug(db, slug)
    return TimelineOut(events=await coproprietes_service.fetch_timeline(db, copro))


@router.get("/{slug}/dvf", response_model=DvfTransactionsOut, dependencies=[ProAuthDep])
async def get_dvf(
    slug: str,
    limit: int = Query(dvf_service.DEFAULT_LIMIT, ge=1, le=dvf_service.DEFAULT_LIMIT),
    db: AsyncSession = Depends(get_db),
):
    copro = await coproprietes_service.get_by_slug(db, slug)
    if copro.latitude is None or copro.longitude is None:
        return DvfTransactionsOut(transactions=[], count=0)
    rows = await dvf_service.fetch_transactions(db, copro.latitude, copro.longitude, limit=limit)
    return DvfTransactionsOut(transactions=rows, count=len(rows))


@router.get("/{slug}/dvf/trimestres", response_model=DvfQuartersOut, dependencies=[ProAuthDep])
async def get_dvf_trimestres(slug: str, db: AsyncSession = Depends(get_db)):
    copro = await coproprietes_service.get_by_slug(db, slug)
    if copro.latitude is None or copro.longitude is None:
        return DvfQuartersOut(trimestres=[])
    rows = await dvf_service.fetch_quarterly_averages(db, copro.latitude, copro.longitude)
    return DvfQuartersOut(trimestres=rows)
