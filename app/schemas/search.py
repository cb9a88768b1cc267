from __future__ import annotations

from typing import List, Optional

from app.schemas.common import CamelModel

"""
Schemas Recherche.

Rôle (fonctionnel) :
- Résultat de recherche (géographique ou textuelle) ; distance en mètres pour les résultats géo.
"""


class SearchResult(CamelModel):
    id: int
    slug: Optional[str] = None
    adresse: Optional[str] = None
    commune: Optional[str] = None
    code_postal: Optional[str] = None
    nom_usage: Optional[str] = None
    score_global: Optional[int] = None
    nb_lots: Optional[int] = None
    distance: Optional[int] = None


class SearchOut(CamelModel):
    results: List[SearchResult]
