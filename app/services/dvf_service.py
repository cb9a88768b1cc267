from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy import Integer, Numeric, cast, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.dvf_transaction import DvfTransaction
from app.schemas.coproprietes import DvfQuarterOut, DvfTransactionOut
from app.services.geo import BoundingBox

"""
DVF Service.

Rôle (fonctionnel) :
- Transactions DVF autour d’une copropriété (rayon 500 m, 3 dernières années, surface >= 9 m²),
  plus récentes d’abord, avec prix au m² arrondi.
- Moyennes trimestrielles du prix au m² sur la même zone (courbe d’évolution).
"""

DVF_RADIUS_M = 500
MIN_SURFACE_M2 = 9
DEFAULT_LIMIT = 5000
YEARS_BACK = 3


def _since(today: Optional[date] = None) -> date:
    today = today or date.today()
    try:
        return today.replace(year=today.year - YEARS_BACK)
    except ValueError:
        return today.replace(year=today.year - YEARS_BACK, day=28)


def _conditions(lat: float, lon: float, today: Optional[date]) -> list:
    box = BoundingBox.around(lat, lon, DVF_RADIUS_M)
    return [
        DvfTransaction.latitude.between(box.south, box.north),
        DvfTransaction.longitude.between(box.west, box.east),
        DvfTransaction.surface >= MIN_SURFACE_M2,
        DvfTransaction.date_mutation >= _since(today),
    ]


async def fetch_transactions(
    db: AsyncSession,
    lat: float,
    lon: float,
    limit: int = DEFAULT_LIMIT,
    today: Optional[date] = None,
) -> List[DvfTransactionOut]:
    prix_m2 = cast(func.round(cast(DvfTransaction.prix / DvfTransaction.surface, Numeric), 0), Integer)
    stmt = (
        select(
            DvfTransaction.id,
            DvfTransaction.date_mutation,
            DvfTransaction.prix,
            DvfTransaction.surface,
            DvfTransaction.nb_pieces,
            DvfTransaction.adresse,
            prix_m2.label("prix_m2"),
        )
        .where(*_conditions(lat, lon, today))
        .order_by(DvfTransaction.date_mutation.desc())
        .limit(limit)
    )
    rows = (await db.execute(stmt)).all()
    return [DvfTransactionOut.model_validate(r) for r in rows]


async def fetch_quarterly_averages(
    db: AsyncSession,
    lat: float,
    lon: float,
    today: Optional[date] = None,
) -> List[DvfQuarterOut]:
    year = cast(extract("year", DvfTransaction.date_mutation), Integer).label("year")
    quarter = cast(extract("quarter", DvfTransaction.date_mutation), Integer).label("quarter")
    avg_prix_m2 = cast(
        func.round(cast(func.avg(DvfTransaction.prix / DvfTransaction.surface), Numeric), 0), Integer
    ).label("avg_prix_m2")

    stmt = (
        select(year, quarter, avg_prix_m2)
        .where(*_conditions(lat, lon, today))
        .group_by(year, quarter)
        .order_by(year.asc(), quarter.asc())
    )
    rows = (await db.execute(stmt)).all()
    return [DvfQuarterOut.model_validate(r) for r in rows]
