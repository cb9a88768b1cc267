from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.dpe_logement import DpeLogement
from app.services.geo import BoundingBox

"""
DPE Service.

Rôle (fonctionnel) :
- Rattache des diagnostics DPE à une copropriété :
  1) correspondance directe sur le numéro d’immatriculation saisi dans le DPE,
  2) sinon proximité géographique (boîte de 50 m).
- Agrège les classes trouvées : classe médiane, nombre de logements, répartition A..G.
"""

DPE_ORDER = ["A", "B", "C", "D", "E", "F", "G"]
DPE_RADIUS_M = 50
MAX_DPE_ROWS = 200
FALLBACK_CLASS = "D"


def median_class(classes: Iterable[str]) -> str:
    """Classe médiane (élément d’indice len // 2 de la liste triée), “D” si rien d’exploitable."""
    ranks = sorted(DPE_ORDER.index(c) for c in classes if c in DPE_ORDER)
    if not ranks:
        return FALLBACK_CLASS
    return DPE_ORDER[ranks[len(ranks) // 2]]


def distribution(classes: Iterable[str]) -> Dict[str, int]:
    dist: Dict[str, int] = {}
    for c in classes:
        if c in DPE_ORDER:
            dist[c] = dist.get(c, 0) + 1
    return dist


@dataclass(frozen=True)
class DpeMatch:
    classes: List[str] = field(default_factory=list)
    direct: bool = False

    @property
    def median(self) -> str:
        return median_class(self.classes)

    @property
    def distribution(self) -> Dict[str, int]:
        return distribution(self.classes)

    @property
    def nb_logements(self) -> int:
        return len(self.classes)


def match_dpe(
    session: Session,
    numero_immatriculation: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
) -> DpeMatch:
    """Applique les deux stratégies dans l’ordre ; classes vides si aucune ne trouve."""
    if numero_immatriculation:
        direct = session.execute(
            select(DpeLogement.classe_dpe)
            .where(
                DpeLogement.numero_immatriculation_copropriete == numero_immatriculation,
                DpeLogement.classe_dpe.is_not(None),
            )
            .limit(MAX_DPE_ROWS)
        ).scalars().all()
        if direct:
            return DpeMatch(classes=list(direct), direct=True)

    if lat is None or lon is None:
        return DpeMatch()

    box = BoundingBox.around(lat, lon, DPE_RADIUS_M)
    nearby = session.execute(
        select(DpeLogement.classe_dpe)
        .where(box.where(DpeLogement.latitude, DpeLogement.longitude), DpeLogement.classe_dpe.is_not(None))
        .limit(MAX_DPE_ROWS)
    ).scalars().all()
    return DpeMatch(classes=list(nearby))
