from __future__ import annotations

from typing import List, Optional

from app.schemas.common import CamelModel

"""
Schemas Stats.

Rôle (fonctionnel) :
- Distribution globale des scores (moyenne, min, max, buckets) et histogramme par tranches de 10 points.
"""


class HistogramBin(CamelModel):
    min: int
    max: int
    count: int


class ScoreStatsOut(CamelModel):
    total: int
    avg: Optional[float] = None
    min: Optional[int] = None
    max: Optional[int] = None
    bon: int = 0
    moyen: int = 0
    attention: int = 0
    histogram: List[HistogramBin]
