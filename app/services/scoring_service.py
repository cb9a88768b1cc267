from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional

from app.services.formatting import is_known_period, round_half_up, round_int, score_band

"""
Scoring Service.

Rôle (fonctionnel) :
- Calcule le score de santé d’une copropriété sur 5 dimensions :
  - technique   /25 (période de construction)
  - risques     /30 (plan de péril, administration provisoire, procédures)
  - gouvernance /25 (type de syndic, syndicat coopératif)
  - énergie     /20 (classe DPE médiane)
  - marché      /20 (évolution des prix DVF à 500 m)
- Total brut /120 ramené sur 100 (score_global).
- Indice de confiance : part des champs renseignés parmi ceux que le barème sait exploiter.

Le calcul est pur (aucun accès DB) : les scripts batch et l’API l’appellent sur des valeurs déjà
chargées.
"""

RAW_MAX = 120  # 25 + 30 + 25 + 20 + 20

TECHNIQUE_BY_PERIOD: Dict[str, int] = {
    "A_COMPTER_DE_2011": 25,
    "DE_2001_A_2010": 25,
    "DE_1994_A_2000": 20,
    "DE_1975_A_1993": 20,
    "DE_1961_A_1974": 15,
    "DE_1949_A_1960": 15,
    "AVANT_1949": 10,
}

DPE_SCORES: Dict[str, int] = {"A": 20, "B": 17, "C": 14, "D": 11, "E": 8, "F": 5, "G": 2}


@dataclass(frozen=True)
class ScoreInput:
    """Champs d’une copropriété lus par le barème."""
    periode_construction: Optional[str] = None
    copro_dans_pdp: Optional[int] = None
    type_syndic: Optional[str] = None
    syndicat_cooperatif: Optional[str] = None
    # Pas encore publiés par le RNIC : None = champ non exploité
    administration_provisoire: Optional[bool] = None
    procedure_en_cours: Optional[bool] = None
    dpe: Optional[str] = None
    marche_evolution: Optional[float] = None
    marche_nb_transactions: Optional[int] = None

    @classmethod
    def from_copro(cls, copro: Any) -> "ScoreInput":
        """Construit l’entrée depuis un objet ORM, une Row ou un mapping."""
        get = copro.get if isinstance(copro, Mapping) else (lambda k: getattr(copro, k, None))
        return cls(
            periode_construction=get("periode_construction"),
            copro_dans_pdp=get("copro_dans_pdp"),
            type_syndic=get("type_syndic"),
            syndicat_cooperatif=get("syndicat_cooperatif"),
            dpe=get("dpe_classe_mediane"),
            marche_evolution=get("marche_evolution"),
            marche_nb_transactions=get("marche_nb_transactions"),
        )


@dataclass(frozen=True)
class DimensionScore:
    score: int
    fields_used: int
    fields_total: int


@dataclass(frozen=True)
class ScoreResult:
    """Résultat complet (colonnes score_* de la table coproprietes)."""
    score_global: int          # /100
    score_technique: int       # /25
    score_risques: int         # /30
    score_gouvernance: int     # /25
    score_energie: int         # /20
    score_marche: int          # /20
    indice_confiance: float    # 0..1

    @property
    def band(self) -> Optional[str]:
        return score_band(self.score_global)

    def as_columns(self) -> Dict[str, Any]:
        return asdict(self)


class ScoringService:
    """
    Barème déterministe CoproScore.

    Chaque dimension renvoie (score, champs utilisés, champs attendus) ; la somme des champs
    alimente l’indice de confiance.
    """

    def technique(self, i: ScoreInput) -> DimensionScore:
        p = i.periode_construction
        if not is_known_period(p):
            return DimensionScore(15, 0, 1)
        # Période inconnue du barème mais renseignée : valeur par défaut, champ compté
        return DimensionScore(TECHNIQUE_BY_PERIOD.get(p, 15), 1, 1)

    def risques(self, i: ScoreInput) -> DimensionScore:
        score = 30
        used = 0

        if i.copro_dans_pdp is not None:
            used += 1
            if i.copro_dans_pdp > 0:
                score -= 20

        if i.administration_provisoire is not None:
            used += 1
            if i.administration_provisoire:
                score -= 15

        if i.procedure_en_cours is not None:
            used += 1
            if i.procedure_en_cours:
                score -= 10

        return DimensionScore(max(0, score), used, 3)

    def gouvernance(self, i: ScoreInput) -> DimensionScore:
        t = i.type_syndic
        if not t:
            return DimensionScore(8, 0, 1)

        if t == "professionnel":
            score = 25
        elif i.syndicat_cooperatif == "oui":
            score = 20
        elif t == "bénévole":
            score = 15
        else:
            score = 8
        return DimensionScore(score, 1, 1)

    def energie(self, i: ScoreInput) -> DimensionScore:
        if i.dpe in DPE_SCORES:
            return DimensionScore(DPE_SCORES[i.dpe], 1, 1)
        return DimensionScore(10, 0, 1)

    def marche(self, i: ScoreInput) -> DimensionScore:
        evo = i.marche_evolution
        nb_tx = i.marche_nb_transactions

        # Pas assez de ventes : neutre
        if evo is None or nb_tx is None or nb_tx < 3:
            return DimensionScore(10, 0, 1)

        if evo >= 10:
            score = 20
        elif evo >= 5:
            score = 17
        elif evo >= 0:
            score = 14
        elif evo >= -5:
            score = 11
        elif evo >= -10:
            score = 8
        else:
            score = 4
        return DimensionScore(score, 1, 1)

    def calculate(self, i: ScoreInput) -> ScoreResult:
        dims: List[DimensionScore] = [
            self.technique(i),
            self.risques(i),
            self.gouvernance(i),
            self.energie(i),
            self.marche(i),
        ]
        technique, risques, gouvernance, energie, marche = dims

        raw_total = sum(d.score for d in dims)
        fields_used = sum(d.fields_used for d in dims)
        fields_total = sum(d.fields_total for d in dims)

        return ScoreResult(
            score_global=round_int(raw_total / RAW_MAX * 100),
            score_technique=technique.score,
            score_risques=risques.score,
            score_gouvernance=gouvernance.score,
            score_energie=energie.score,
            score_marche=marche.score,
            indice_confiance=round_half_up(fields_used / fields_total, 2) if fields_total else 0.0,
        )


_default_service = ScoringService()


def calculate_score(i: ScoreInput) -> ScoreResult:
    """Raccourci fonctionnel sur le barème par défaut."""
    return _default_service.calculate(i)
