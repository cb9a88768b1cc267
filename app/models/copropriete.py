from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

"""
Model Copropriete.

Rôle (fonctionnel) :
- Représente une copropriété du Registre National d’Immatriculation des Copropriétés (RNIC).
- Pivot métier : les indicateurs dérivés (marché DVF, DPE, scores) sont stockés sur la même ligne
  pour servir la recherche, la carte et les fiches sans jointure.

Groupes de colonnes :
- Identité / adresse / géolocalisation (import RNIC).
- Gouvernance : syndic, représentant légal, mandat, syndicat coopératif.
- Bâti : lots, période de construction, références cadastrales.
- Dispositifs publics : quartiers prioritaires, ACV / PVD, plan de péril, copro aidée.
- Découpage administratif officiel (commune, arrondissement, EPCI, département, région).
- Dérivés : slug, marche_*, dpe_*, score_* (+ indice de confiance).

Index :
- Boîte géographique (latitude, longitude) pour carte / recherche / rayon.
- Filtres et classements courants (score, commune, département, code postal).
"""


class Copropriete(Base):
    __tablename__ = "coproprietes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # --- Identité RNIC ---
    numero_immatriculation: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    date_immatriculation: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_derniere_maj: Mapped[date | None] = mapped_column(Date, nullable=True)
    slug: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)

    # --- Syndic / représentant légal ---
    type_syndic: Mapped[str | None] = mapped_column(String(50), nullable=True)
    identification_representant_legal: Mapped[str | None] = mapped_column(Text, nullable=True)
    raison_sociale_representant_legal: Mapped[str | None] = mapped_column(Text, nullable=True)
    siret_representant_legal: Mapped[str | None] = mapped_column(String(20), nullable=True)
    code_ape: Mapped[str | None] = mapped_column(String(10), nullable=True)
    commune_representant_legal: Mapped[str | None] = mapped_column(String(255), nullable=True)
    mandat_en_cours: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_fin_dernier_mandat: Mapped[date | None] = mapped_column(Date, nullable=True)

    # --- Adresse ---
    nom_usage: Mapped[str | None] = mapped_column(Text, nullable=True)
    adresse_reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    numero_voie: Mapped[str | None] = mapped_column(Text, nullable=True)
    code_postal: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)
    commune_adresse: Mapped[str | None] = mapped_column(String(255), nullable=True)
    adresse_complementaire_1: Mapped[str | None] = mapped_column(Text, nullable=True)
    adresse_complementaire_2: Mapped[str | None] = mapped_column(Text, nullable=True)
    adresse_complementaire_3: Mapped[str | None] = mapped_column(Text, nullable=True)
    nb_adresses_complementaires: Mapped[int | None] = mapped_column(Integer, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # --- Structure juridique ---
    date_reglement_copropriete: Mapped[date | None] = mapped_column(Date, nullable=True)
    residence_service: Mapped[str | None] = mapped_column(String(20), nullable=True)
    syndicat_cooperatif: Mapped[str | None] = mapped_column(String(20), nullable=True)
    syndicat_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    immatriculation_principal: Mapped[str | None] = mapped_column(String(20), nullable=True)
    nb_asl: Mapped[int | None] = mapped_column(Integer, nullable=True)
    nb_aful: Mapped[int | None] = mapped_column(Integer, nullable=True)
    nb_unions_syndicats: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # --- Lots / bâti ---
    nb_total_lots: Mapped[int | None] = mapped_column(Integer, nullable=True)
    nb_lots_hab_bur_com: Mapped[int | None] = mapped_column(Integer, nullable=True)
    nb_lots_habitation: Mapped[int | None] = mapped_column(Integer, nullable=True)
    nb_lots_stationnement: Mapped[int | None] = mapped_column(Integer, nullable=True)
    periode_construction: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # --- Cadastre (3 premières parcelles) ---
    ref_cadastrale_1: Mapped[str | None] = mapped_column(String(50), nullable=True)
    code_insee_commune_1: Mapped[str | None] = mapped_column(String(10), nullable=True)
    prefixe_1: Mapped[str | None] = mapped_column(String(10), nullable=True)
    section_1: Mapped[str | None] = mapped_column(String(10), nullable=True)
    numero_parcelle_1: Mapped[str | None] = mapped_column(String(10), nullable=True)
    ref_cadastrale_2: Mapped[str | None] = mapped_column(String(50), nullable=True)
    code_insee_commune_2: Mapped[str | None] = mapped_column(String(10), nullable=True)
    prefixe_2: Mapped[str | None] = mapped_column(String(10), nullable=True)
    section_2: Mapped[str | None] = mapped_column(String(10), nullable=True)
    numero_parcelle_2: Mapped[str | None] = mapped_column(String(10), nullable=True)
    ref_cadastrale_3: Mapped[str | None] = mapped_column(String(50), nullable=True)
    code_insee_commune_3: Mapped[str | None] = mapped_column(String(10), nullable=True)
    prefixe_3: Mapped[str | None] = mapped_column(String(10), nullable=True)
    section_3: Mapped[str | None] = mapped_column(String(10), nullable=True)
    numero_parcelle_3: Mapped[str | None] = mapped_column(String(10), nullable=True)
    nb_parcelles_cadastrales: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # --- Dispositifs publics ---
    nom_qp_2015: Mapped[str | None] = mapped_column(String(255), nullable=True)
    code_qp_2015: Mapped[str | None] = mapped_column(String(20), nullable=True)
    nom_qp_2024: Mapped[str | None] = mapped_column(String(255), nullable=True)
    code_qp_2024: Mapped[str | None] = mapped_column(String(20), nullable=True)
    copro_dans_acv: Mapped[str | None] = mapped_column(String(10), nullable=True)
    copro_dans_pvd: Mapped[str | None] = mapped_column(String(10), nullable=True)
    code_pdp: Mapped[str | None] = mapped_column(String(50), nullable=True)
    copro_dans_pdp: Mapped[int | None] = mapped_column(Integer, nullable=True)
    copro_aidee: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # --- Découpage administratif officiel ---
    code_officiel_commune: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)
    nom_officiel_commune: Mapped[str | None] = mapped_column(String(255), nullable=True)
    code_officiel_arrondissement: Mapped[str | None] = mapped_column(String(10), nullable=True)
    nom_officiel_arrondissement: Mapped[str | None] = mapped_column(String(255), nullable=True)
    code_officiel_epci: Mapped[str | None] = mapped_column(String(20), nullable=True)
    nom_officiel_epci: Mapped[str | None] = mapped_column(String(255), nullable=True)
    code_officiel_departement: Mapped[str | None] = mapped_column(String(5), nullable=True, index=True)
    nom_officiel_departement: Mapped[str | None] = mapped_column(String(255), nullable=True)
    code_officiel_region: Mapped[str | None] = mapped_column(String(5), nullable=True)
    nom_officiel_region: Mapped[str | None] = mapped_column(String(255), nullable=True)
    epci: Mapped[str | None] = mapped_column(String(255), nullable=True)
    commune: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # --- Scores (calculate_scores) ---
    score_global: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    score_technique: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_risques: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_gouvernance: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_energie: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_marche: Mapped[int | None] = mapped_column(Integer, nullable=True)
    indice_confiance: Mapped[float | None] = mapped_column(Float, nullable=True)

    # --- Marché DVF (calculate_market) ---
    marche_prix_m2: Mapped[float | None] = mapped_column(Float, nullable=True)
    marche_evolution: Mapped[float | None] = mapped_column(Float, nullable=True)
    marche_nb_transactions: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # --- DPE (calculate_dpe) ---
    dpe_classe_mediane: Mapped[str | None] = mapped_column(String(1), nullable=True)
    dpe_nb_logements: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dpe_distribution: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    # Horodatages
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    alerts = relationship("ScoreAlert", back_populates="copropriete", passive_deletes=True)

    __table_args__ = (
        Index("ix_coproprietes_lat_lon", "latitude", "longitude"),
        Index("ix_coproprietes_commune_score", "code_officiel_commune", "score_global"),
    )
