from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

"""
Model DpeLogement.

Rôle (fonctionnel) :
- Diagnostic de performance énergétique d’un logement existant (base ADEME).
- Rattaché à une copropriété soit par numéro d’immatriculation (quand le diagnostiqueur l’a
  saisi), soit par proximité géographique (50 m).
"""


class DpeLogement(Base):
    __tablename__ = "dpe_logements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    numero_dpe: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    date_dpe: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Étiquettes A..G (énergie, gaz à effet de serre)
    classe_dpe: Mapped[str | None] = mapped_column(String(1), nullable=True)
    classe_ges: Mapped[str | None] = mapped_column(String(1), nullable=True)

    code_postal: Mapped[str | None] = mapped_column(String(10), nullable=True)
    code_insee: Mapped[str | None] = mapped_column(String(10), nullable=True)
    adresse: Mapped[str | None] = mapped_column(Text, nullable=True)

    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    numero_immatriculation_copropriete: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)

    __table_args__ = (Index("ix_dpe_lat_lon", "latitude", "longitude"),)
