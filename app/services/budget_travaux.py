from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

"""
Budget travaux.

Rôle (fonctionnel) :
- Estime une fourchette de travaux (par poste) à partir de données publiques :
  période de construction, nombre de lots d’habitation, DPE médian, plan de péril.
- Les montants sont des ordres de grandeur “par lot” (sauf ascenseur), cumulés en totaux min/max.
- Fiabilité : haute (DPE + période), moyenne (période seule), faible (sinon).

Fonction pure : l’API l’appelle sur la copropriété déjà chargée.
"""

PERIOD_ORDER = [
    "avant_1949",
    "1949_1960",
    "1961_1974",
    "1975_1993",
    "1994_2000",
    "2001_2010",
    "apres_2011",
]

DPE_CLASSES = "ABCDEFG"

ISOLATION = "Isolation thermique"
RAVALEMENT = "Ravalement de façade"
ELECTRICITE = "Mise aux normes électricité/plomberie"
ASCENSEUR = "Remplacement ascenseur"
TOITURE = "Réfection toiture"
SECURITE = "Mise en conformité sécurité incendie"

ROOF_M2_PER_LOT = 60
ASCENSEUR_MIN_LOTS = 15


@dataclass(frozen=True)
class PosteTravaux:
    nom: str
    description: str
    min: int
    max: int


@dataclass(frozen=True)
class EstimationTravaux:
    postes: List[PosteTravaux] = field(default_factory=list)
    total_min: int = 0
    total_max: int = 0
    fiabilite: str = "faible"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "postes": [
                {"nom": p.nom, "description": p.description, "min": p.min, "max": p.max}
                for p in self.postes
            ],
            "totalMin": self.total_min,
            "totalMax": self.total_max,
            "fiabilite": self.fiabilite,
        }


def parse_period(value: Optional[str]) -> Optional[str]:
    """Valeur RNIC (ou libellé) -> bucket de PERIOD_ORDER, None si non reconnu."""
    if not value:
        return None
    u = "_".join(value.upper().split())
    if "AVANT_1949" in u:
        return "avant_1949"
    for bucket in PERIOD_ORDER[1:-1]:
        start, end = bucket.split("_")
        if start in u and end in u:
            return bucket
    if "2011" in u:
        return "apres_2011"
    return None


def _rank(bucket: str) -> int:
    return PERIOD_ORDER.index(bucket)


def _before(period: Optional[str], threshold: str) -> bool:
    return period is not None and _rank(period) < _rank(threshold)


def _before_or_equal(period: Optional[str], threshold: str) -> bool:
    return period is not None and _rank(period) <= _rank(threshold)


def _dpe_rank(classe: str) -> int:
    return DPE_CLASSES.index(classe)


def _clean_dpe(value: Optional[str]) -> Optional[str]:
    if not value or len(value) != 1:
        return None
    upper = value.upper()
    return upper if upper in DPE_CLASSES else None


def estimer_budget_travaux(
    periode_construction: Optional[str],
    nb_lots_habitation: Optional[int],
    dpe_classe_mediane: Optional[str],
    copro_dans_pdp: Optional[int],
) -> EstimationTravaux:
    period = parse_period(periode_construction)
    lots = nb_lots_habitation if nb_lots_habitation is not None else 1
    dpe = _clean_dpe(dpe_classe_mediane)
    en_peril = copro_dans_pdp is not None and copro_dans_pdp > 0

    postes: List[PosteTravaux] = []

    # 1. Isolation
    if dpe and _dpe_rank(dpe) >= _dpe_rank("E"):
        postes.append(PosteTravaux(
            ISOLATION, f"DPE {dpe} : passoire énergétique, isolation prioritaire", 8_000 * lots, 15_000 * lots
        ))
    elif _before(period, "1975_1993") and (not dpe or _dpe_rank(dpe) >= _dpe_rank("C")):
        postes.append(PosteTravaux(
            ISOLATION, "Construction avant 1975, isolation probablement insuffisante", 8_000 * lots, 15_000 * lots
        ))

    if (not postes or postes[-1].nom != ISOLATION) and dpe in ("C", "D"):
        postes.append(PosteTravaux(
            ISOLATION, f"DPE {dpe} : améliorations énergétiques recommandées", 3_000 * lots, 8_000 * lots
        ))

    # 2. Ravalement
    if period:
        if _before_or_equal(period, "1949_1960"):
            postes.append(PosteTravaux(
                RAVALEMENT, "Bâtiment ancien, ravalement probablement nécessaire", 4_000 * lots, 8_000 * lots
            ))
        elif _before_or_equal(period, "1975_1993"):
            postes.append(PosteTravaux(
                RAVALEMENT, "Construction 1960-1990, ravalement à prévoir", 2_500 * lots, 5_000 * lots
            ))
        else:
            postes.append(PosteTravaux(
                RAVALEMENT, "Construction récente, entretien courant", 1_000 * lots, 3_000 * lots
            ))

    # 3. Électricité / plomberie
    if _before(period, "1961_1974"):
        postes.append(PosteTravaux(
            ELECTRICITE, "Installation avant 1970, mise aux normes probable", 3_000 * lots, 7_000 * lots
        ))
    elif _before_or_equal(period, "1975_1993"):
        postes.append(PosteTravaux(
            ELECTRICITE, "Installation 1970-1990, vérification recommandée", 1_500 * lots, 4_000 * lots
        ))

    # 4. Ascenseur (forfait immeuble)
    if lots >= ASCENSEUR_MIN_LOTS and _before(period, "1994_2000"):
        postes.append(PosteTravaux(
            ASCENSEUR, "Copropriété de 15+ lots, ascenseur potentiellement vétuste", 30_000, 60_000
        ))

    # 5. Toiture
    surface = lots * ROOF_M2_PER_LOT
    if _before(period, "1961_1974"):
        postes.append(PosteTravaux(
            TOITURE, f"Construction ancienne, toiture estimée à {surface} m²", 150 * surface, 300 * surface
        ))
    elif _before(period, "2001_2010"):
        postes.append(PosteTravaux(
            TOITURE, f"Toiture 1970-2000, surface estimée {surface} m²", 80 * surface, 150 * surface
        ))

    # 6. Plan de péril
    if en_peril:
        postes.append(PosteTravaux(
            SECURITE, "Plan de péril : travaux de sécurité obligatoires", 5_000 * lots, 15_000 * lots
        ))

    if dpe and period:
        fiabilite = "haute"
    elif period:
        fiabilite = "moyenne"
    else:
        fiabilite = "faible"

    return EstimationTravaux(
        postes=postes,
        total_min=sum(p.min for p in postes),
        total_max=sum(p.max for p in postes),
        fiabilite=fiabilite,
    )


def estimer_pour_copro(copro: Any) -> EstimationTravaux:
    return estimer_budget_travaux(
        periode_construction=copro.periode_construction,
        nb_lots_habitation=copro.nb_lots_habitation,
        dpe_classe_mediane=copro.dpe_classe_mediane,
        copro_dans_pdp=copro.copro_dans_pdp,
    )
