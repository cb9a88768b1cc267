from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

"""
Model ScoreAlert.

Rôle (fonctionnel) :
- Abonnement d’un email au suivi du score d’une copropriété.
- Inactive tant que l’email n’a pas été confirmé (double opt-in via AlertConfirmation).

Relations :
- ScoreAlert -> Copropriete (suppression en cascade).
- ScoreAlert -> AlertConfirmation (jetons envoyés).
- ScoreAlert -> ScoreAlertEvent (historique : création, confirmation, variations de score).

Contraintes :
- 1 alerte par (email, copro_id) : la création est idempotente.
"""


class ScoreAlert(Base):
    __tablename__ = "score_alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Email normalisé en minuscules
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)

    copro_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("coproprietes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, index=True)

    copropriete = relationship("Copropriete", back_populates="alerts", lazy="joined")
    confirmations = relationship("AlertConfirmation", back_populates="alert", passive_deletes=True)
    events = relationship("ScoreAlertEvent", back_populates="alert", passive_deletes=True)

    __table_args__ = (UniqueConstraint("email", "copro_id", name="uq_score_alerts_email_copro"),)
