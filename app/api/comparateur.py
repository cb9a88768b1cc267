from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AppHTTPException
from app.db.session import get_db
from app.schemas.coproprietes import ComparateurOut
from app.services import coproprietes_service

"""
API Comparateur.

Rôle (fonctionnel) :
- Compare jusqu’à 5 copropriétés (slugs séparés par des virgules), dans l’ordre demandé.
"""

router = APIRouter(prefix="/comparateur", tags=["comparateur"])


@router.get("", response_model=ComparateurOut)
async def comparateur(slugs: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    if not slugs:
        raise AppHTTPException(400, "MISSING_SLUGS", "Paramètre slugs manquant")
    copros = await coproprietes_service.compare(db, coproprietes_service.parse_slugs(slugs))
    return ComparateurOut(copros=copros)
