from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.dvf_transaction import DvfTransaction
from app.services.formatting import round_half_up, round_int
from app.services.geo import BoundingBox

"""
Market Service.

Rôle (fonctionnel) :
- Statistiques de marché DVF autour d’une copropriété (rayon 500 m) :
  - prix moyen au m² pondéré par la surface (Σ prix / Σ surface),
  - nombre de ventes,
  - évolution (%) : moyenne €/m² des 12 derniers mois vs des mois 12 à 36.
- Le calcul est séparé en deux : chargement SQL (boîte géographique) puis agrégation pure,
  ce qui permet de tester l’agrégation sans base.
"""

MARKET_RADIUS_M = 500
MIN_ROWS_PER_PERIOD = 2


@dataclass(frozen=True)
class MarketStats:
    prix_m2: int
    evolution: Optional[float]
    nb_transactions: int


def _years_before(ref: date, years: int) -> date:
    try:
        return ref.replace(year=ref.year - years)
    except ValueError:
        # 29 février -> 28 février
        return ref.replace(year=ref.year - years, day=28)


def compute_market_stats(
    rows: Iterable[Tuple[float, float, date]],
    today: Optional[date] = None,
) -> Optional[MarketStats]:
    """
    Agrège des lignes (prix, surface, date_mutation).

    Retourne None si aucune ligne exploitable (surface > 0).
    """
    today = today or date.today()
    one_year_ago = _years_before(today, 1)
    three_years_ago = _years_before(today, 3)

    total_prix = 0.0
    total_surface = 0.0
    nb = 0
    recent: List[float] = []
    older: List[float] = []

    for prix, surface, date_mutation in rows:
        if not surface or surface <= 0:
            continue
        if isinstance(date_mutation, datetime):
            date_mutation = date_mutation.date()

        nb += 1
        total_prix += prix
        total_surface += surface

        pm2 = prix / surface
        if date_mutation >= one_year_ago:
            recent.append(pm2)
        elif date_mutation >= three_years_ago:
            older.append(pm2)

    if nb == 0:
        return None

    return MarketStats(
        prix_m2=round_int(total_prix / total_surface),
        evolution=compute_evolution(recent, older),
        nb_transactions=nb,
    )


def compute_evolution(recent: Sequence[float], older: Sequence[float]) -> Optional[float]:
    """Variation (%) des moyennes €/m², arrondie à 1 décimale ; None si données insuffisantes."""
    if len(recent) < MIN_ROWS_PER_PERIOD or len(older) < MIN_ROWS_PER_PERIOD:
        return None
    avg_recent = sum(recent) / len(recent)
    avg_older = sum(older) / len(older)
    if avg_older <= 0:
        return None
    return round_half_up((avg_recent - avg_older) / avg_older * 100, 1)


def load_market_rows(session: Session, lat: float, lon: float, radius_m: float = MARKET_RADIUS_M):
    """Ventes DVF (prix, surface, date) dans la boîte du rayon, surface > 0."""
    box = BoundingBox.around(lat, lon, radius_m)
    stmt = select(DvfTransaction.prix, DvfTransaction.surface, DvfTransaction.date_mutation).where(
        box.where(DvfTransaction.latitude, DvfTransaction.longitude),
        DvfTransaction.surface > 0,
    )
    return session.execute(stmt).all()


def market_stats_for(session: Session, lat: float, lon: float, today: Optional[date] = None) -> Optional[MarketStats]:
    return compute_market_stats(load_market_rows(session, lat, lon), today=today)
