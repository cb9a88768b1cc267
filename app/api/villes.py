from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.villes import DepartementOut, DepartementsOut, VilleOut
from app.services import villes_service

"""
API Villes.

Rôle (fonctionnel) :
- Index des départements, page département (communes), page commune (stats + copropriétés).

Les routes /departements sont déclarées avant /{slug} pour ne pas être capturées par la page commune.
"""

router = APIRouter(prefix="/villes", tags=["villes"])


@router.get("/departements", response_model=DepartementsOut)
async def list_departements(db: AsyncSession = Depends(get_db)):
    return DepartementsOut(departements=await villes_service.departements(db))


@router.get("/departements/{slug}", response_model=DepartementOut)
async def get_departement(slug: str, db: AsyncSession = Depends(get_db)):
    return await villes_service.departement(db, slug)


@router.get("/{slug}", response_model=VilleOut)
async def get_ville(
    slug: str,
    cp: Optional[str] = Query(None, pattern=r"^\d{5}$"),
    db: AsyncSession = Depends(get_db),
):
    return await villes_service.ville(db, slug, code_postal=cp)
