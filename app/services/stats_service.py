from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.copropriete import Copropriete
from app.schemas.stats import HistogramBin, ScoreStatsOut
from app.services.formatting import round_half_up

"""
Stats Service.

Rôle (fonctionnel) :
- Vue d’ensemble des scores calculés : moyenne (1 décimale), min, max, répartition par bucket.
- Histogramme par tranches de 10 points (0-9, 10-19, …, 90-100 : 100 rejoint la dernière tranche).
"""

BIN_WIDTH = 10
NB_BINS = 10


def build_histogram(counts: Iterable[Tuple[int, int]]) -> List[HistogramBin]:
    """(indice de tranche, effectif) -> 10 tranches complètes, vides comprises."""
    by_bin: Dict[int, int] = {}
    for index, count in counts:
        i = min(int(index), NB_BINS - 1)
        by_bin[i] = by_bin.get(i, 0) + int(count)
    return [
        HistogramBin(
            min=i * BIN_WIDTH,
            max=100 if i == NB_BINS - 1 else (i + 1) * BIN_WIDTH - 1,
            count=by_bin.get(i, 0),
        )
        for i in range(NB_BINS)
    ]


async def score_stats(db: AsyncSession) -> ScoreStatsOut:
    score = Copropriete.score_global
    agg = (
        await db.execute(
            select(
                func.count().label("total"),
                func.avg(score).label("avg"),
                func.min(score).label("min"),
                func.max(score).label("max"),
                func.count().filter(score >= 70).label("bon"),
                func.count().filter(score >= 40, score < 70).label("moyen"),
                func.count().filter(score < 40).label("attention"),
            ).where(score.is_not(None))
        )
    ).one()

    bucket = func.floor(score / BIN_WIDTH).label("bucket")
    bins = (
        await db.execute(select(bucket, func.count()).where(score.is_not(None)).group_by(bucket))
    ).all()

    return ScoreStatsOut(
        total=agg.total,
        avg=round_half_up(float(agg.avg), 1) if agg.avg is not None else None,
        min=agg.min,
        max=agg.max,
        bon=agg.bon,
        moyen=agg.moyen,
        attention=agg.attention,
        histogram=build_histogram((b[0], b[1]) for b in bins),
    )
