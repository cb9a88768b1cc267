from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.stats import ScoreStatsOut
from app.services import stats_service

"""
API Stats.

Rôle (fonctionnel) :
- Distribution globale des scores (page méthodologie / accueil).
"""

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/scores", response_model=ScoreStatsOut)
async def score_stats(db: AsyncSession = Depends(get_db)):
    return await stats_service.score_stats(db)
