from __future__ import annotations

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import CamelModel

"""
Schemas Alertes (Pydantic).

Rôle (fonctionnel) :
- Définit le contrat HTTP des alertes de variation de score :
  - création (email + slug de copropriété),
  - liste des alertes d’un email,
  - historique (events) d’une alerte.

Notes :
- L’email est normalisé en minuscules dès la validation.
- Une adresse invalide est rejetée en 400 INVALID_EMAIL par la route (et non en 422) :
  le validateur ne fait que normaliser, la règle métier vit dans app.services.alertes_service.
"""

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and EMAIL_RE.match(value) is not None


class AlertCreate(BaseModel):
    """Payload de création d’alerte."""
    email: Optional[str] = Field(default=None, max_length=320)
    slug: Optional[str] = Field(default=None, max_length=255)

    # Champs inconnus ignorés (clients front et pro)
    model_config = ConfigDict(extra="ignore")

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class AlertOut(CamelModel):
    """Alerte d’un email, avec le résumé de la copropriété suivie."""
    id: int
    copro_id: int
    active: bool
    created_at: datetime
    slug: Optional[str] = None
    nom: str
    adresse: str
    score: Optional[int] = None


class AlertListOut(CamelModel):
    alerts: List[AlertOut]


class AlertEventOut(CamelModel):
    """Événement d’historique d’alerte (audit trail)."""
    id: str
    alert_id: int
    event_type: str
    old_score: Optional[int] = None
    new_score: Optional[int] = None
    message: Optional[str] = None
    request_id: Optional[str] = None
    created_at: datetime
