from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from app.schemas.common import CamelModel

"""
Schemas Copropriétés.

Rôle (fonctionnel) :
- Fiche détaillée d’une copropriété (données RNIC + scores + marché + DPE) enrichie :
  nom lisible, bucket de score, explications, budget travaux, voisines, moyenne communale.
- Score de quartier, timeline, transactions DVF et moyennes trimestrielles.
- Ligne de comparateur.
"""


class CoproBase(CamelModel):
    """Champs communs aux vues fiche / comparateur."""
    id: int
    slug: Optional[str] = None
    nom_usage: Optional[str] = None
    adresse_reference: Optional[str] = None
    commune_adresse: Optional[str] = None
    code_postal: Optional[str] = None
    nb_total_lots: Optional[int] = None
    nb_lots_habitation: Optional[int] = None
    periode_construction: Optional[str] = None
    type_syndic: Optional[str] = None
    syndicat_cooperatif: Optional[str] = None
    residence_service: Optional[str] = None
    copro_dans_pdp: Optional[int] = None

    score_global: Optional[int] = None
    score_technique: Optional[int] = None
    score_risques: Optional[int] = None
    score_gouvernance: Optional[int] = None
    score_energie: Optional[int] = None
    score_marche: Optional[int] = None
    indice_confiance: Optional[float] = None

    dpe_classe_mediane: Optional[str] = None
    dpe_nb_logements: Optional[int] = None

    marche_prix_m2: Optional[float] = None
    marche_evolution: Optional[float] = None
    marche_nb_transactions: Optional[int] = None


class ComparateurOut(CamelModel):
    copros: List[CoproBase]


class NearbyCopro(CamelModel):
    id: int
    slug: Optional[str] = None
    nom: str
    adresse_reference: Optional[str] = None
    commune_adresse: Optional[str] = None
    code_postal: Optional[str] = None
    score_global: Optional[int] = None
    nb_lots_habitation: Optional[int] = None
    latitude: float
    longitude: float
    distance_m: int


class PosteTravauxOut(CamelModel):
    nom: str
    description: str
    min: int
    max: int


class BudgetTravauxOut(CamelModel):
    postes: List[PosteTravauxOut]
    total_min: int
    total_max: int
    fiabilite: str


class CoproDetail(CoproBase):
    numero_immatriculation: str
    nom: str
    score_band: Optional[str] = None
    periode_label: Optional[str] = None

    date_immatriculation: Optional[date] = None
    date_derniere_maj: Optional[date] = None
    date_reglement_copropriete: Optional[date] = None
    date_fin_dernier_mandat: Optional[date] = None
    raison_sociale_representant_legal: Optional[str] = None
    mandat_en_cours: Optional[str] = None
    nb_lots_stationnement: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    code_officiel_commune: Optional[str] = None
    nom_officiel_commune: Optional[str] = None
    code_officiel_departement: Optional[str] = None
    nom_officiel_departement: Optional[str] = None
    nom_qp_2024: Optional[str] = None
    copro_dans_acv: Optional[str] = None
    copro_dans_pvd: Optional[str] = None
    copro_aidee: Optional[str] = None

    dpe_distribution: Optional[Dict[str, int]] = None

    explications: Dict[str, str]
    budget_travaux: BudgetTravauxOut
    voisines: List[NearbyCopro]
    commune_prix_m2: Optional[int] = None
    diff_commune_pct: Optional[int] = None


class ScoreQuartierOut(CamelModel):
    score_moyen: float
    score_median: int
    nb_copros: int
    pct_bon: int
    pct_moyen: int
    pct_attention: int
    rayon: int


class QuartierOut(CamelModel):
    quartier: Optional[ScoreQuartierOut] = None


class TimelineEventOut(CamelModel):
    date: str
    date_label: Optional[str] = None
    type: str
    titre: str
    description: str


class TimelineOut(CamelModel):
    events: List[TimelineEventOut]


class DvfTransactionOut(CamelModel):
    id: int
    date_mutation: date
    prix: float
    surface: float
    nb_pieces: Optional[int] = None
    adresse: Optional[str] = None
    prix_m2: int


class DvfTransactionsOut(CamelModel):
    transactions: List[DvfTransactionOut]
    count: int


class DvfQuarterOut(CamelModel):
    year: int
    quarter: int
    avg_prix_m2: int


class DvfQuartersOut(CamelModel):
    trimestres: List[DvfQuarterOut]

