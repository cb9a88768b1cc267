from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

"""
Schemas communs.

Rôle (fonctionnel) :
- Base des schémas de réponse : champs déclarés en snake_case côté Python,
  sérialisés en camelCase côté JSON (contrat attendu par le front carte / recherche / comparateur).
- Réponse “message” simple (alertes).
"""


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageOut(BaseModel):
    message: str
