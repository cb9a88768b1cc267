from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

"""
Model DvfTransaction.

Rôle (fonctionnel) :
- Vente d’appartement issue des Demandes de Valeurs Foncières (DVF géolocalisées).
- Source des statistiques de marché (prix au m², évolution, volume) calculées par rayon.

Contraintes :
- Unicité (id_mutation, prix, surface, adresse) : une mutation peut porter plusieurs lots,
  la contrainte sert à ignorer les doublons lors d’un ré-import.

Index :
- Boîte géographique (latitude, longitude) + date pour les requêtes “500 m / 3 ans”.
"""


class DvfTransaction(Base):
    __tablename__ = "dvf_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    id_mutation: Mapped[str] = mapped_column(String(50), nullable=False)
    date_mutation: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # Valeur foncière (€) et surface réelle bâtie (m²)
    prix: Mapped[float] = mapped_column(Float, nullable=False)
    surface: Mapped[float | None] = mapped_column(Float, nullable=True)
    nb_pieces: Mapped[int | None] = mapped_column(Integer, nullable=True)

    code_postal: Mapped[str | None] = mapped_column(String(10), nullable=True)
    code_commune: Mapped[str | None] = mapped_column(String(10), nullable=True)
    adresse: Mapped[str | None] = mapped_column(Text, nullable=True)

    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint("id_mutation", "prix", "surface", "adresse", name="uq_dvf_mutation_lot"),
        Index("ix_dvf_lat_lon", "latitude", "longitude"),
    )
