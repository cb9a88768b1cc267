"""
app.models

Package ORM (SQLAlchemy) : entités persistées de CoproScore.

- Copropriete : registre RNIC + indicateurs dérivés (marché, DPE, scores).
- DvfTransaction / DpeLogement : données sources pour les calculs par rayon.
- ScoreAlert / AlertConfirmation / ScoreAlertEvent : suivi de score par email.

L’import de ce package enregistre toutes les tables dans Base.metadata (utilisé par Alembic).
"""

from app.models.copropriete import Copropriete
from app.models.dvf_transaction import DvfTransaction
from app.models.dpe_logement import DpeLogement
from app.models.score_alert import ScoreAlert
from app.models.alert_confirmation import AlertConfirmation
from app.models.score_alert_event import ScoreAlertEvent

__all__ = [
    "Copropriete",
    "DvfTransaction",
    "DpeLogement",
    "ScoreAlert",
    "AlertConfirmation",
    "ScoreAlertEvent",
]
