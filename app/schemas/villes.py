from __future__ import annotations

from typing import List, Optional

from app.schemas.common import CamelModel

"""
Schemas Villes / Départements.

Rôle (fonctionnel) :
- Statistiques par commune (répartition bon / moyen / attention) et liste des copropriétés.
- Index des départements et des communes d’un département (slug, volume, score moyen).
"""


class VilleStats(CamelModel):
    total: int
    score_moyen: Optional[int] = None
    nb_bon: int = 0
    nb_moyen: int = 0
    nb_attention: int = 0


class VilleCopro(CamelModel):
    id: int
    slug: Optional[str] = None
    nom: str
    adresse_reference: Optional[str] = None
    code_postal: Optional[str] = None
    score_global: Optional[int] = None
    nb_lots_habitation: Optional[int] = None
    type_syndic: Optional[str] = None
    periode_construction: Optional[str] = None


class VilleOut(CamelModel):
    code_commune: str
    nom_commune: Optional[str] = None
    code_postal: Optional[str] = None
    stats: VilleStats
    copros: List[VilleCopro]


class DepartementItem(CamelModel):
    code: str
    nom: Optional[str] = None
    slug: str
    count: int
    score_moyen: Optional[int] = None


class DepartementsOut(CamelModel):
    departements: List[DepartementItem]


class CommuneItem(CamelModel):
    code: str
    nom: Optional[str] = None
    slug: str
    count: int
    score_moyen: Optional[int] = None


class DepartementOut(CamelModel):
    code: str
    nom: Optional[str] = None
    count: int
    score_moyen: Optional[int] = None
    communes: List[CommuneItem]
