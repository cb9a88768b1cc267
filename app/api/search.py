from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.search import SearchOut
from app.services import search_service

"""
API Recherche.

Rôle (fonctionnel) :
- Recherche d’adresse : géocodage BAN + rayon 100 m, complétée par une recherche textuelle.
- Saisie trop courte (< 3 caractères) sans coordonnées : liste vide (pas d’erreur).
"""

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchOut)
async def search(
    q: Optional[str] = Query(None, max_length=200),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
    db: AsyncSession = Depends(get_db),
):
    results = await search_service.search(db, q, lat=lat, lon=lon)
    return SearchOut(results=results)
