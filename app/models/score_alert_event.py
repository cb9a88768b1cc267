from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

"""
Model ScoreAlertEvent.

Rôle (fonctionnel) :
- Historique (audit trail) d’une alerte de score :
  - CREATED : abonnement enregistré (en attente de confirmation),
  - CONFIRMED : jeton validé, alerte active,
  - SCORE_CHANGED : le recalcul a modifié le score de la copropriété suivie.
- Les événements SCORE_CHANGED constituent la file de notifications à envoyer.
- request_id relie un événement aux logs de la requête HTTP qui l’a produit
  (None pour les événements écrits par les scripts batch).
"""

EVENT_CREATED = "CREATED"
EVENT_CONFIRMED = "CONFIRMED"
EVENT_SCORE_CHANGED = "SCORE_CHANGED"


class ScoreAlertEvent(Base):
    __tablename__ = "score_alert_events"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    alert_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("score_alerts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    event_type: Mapped[str] = mapped_column(String(30), nullable=False)

    # Variation de score (SCORE_CHANGED uniquement)
    old_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    new_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
        index=True,
    )

    alert = relationship("ScoreAlert", back_populates="events")
