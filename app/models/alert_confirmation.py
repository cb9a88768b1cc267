from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

"""
Model AlertConfirmation.

Rôle (fonctionnel) :
- Jeton de confirmation (UUID) rattaché à une alerte.
- confirmed_at renseigné au premier clic : un jeton déjà utilisé ne réactive rien.
"""


class AlertConfirmation(Base):
    __tablename__ = "alert_confirmations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    alert_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("score_alerts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    alert = relationship("ScoreAlert", back_populates="confirmations", lazy="joined")
