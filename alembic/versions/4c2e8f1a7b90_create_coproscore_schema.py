"""Schéma initial CoproScore.

Rôle (fonctionnel) :
- Crée les tables du registre (coproprietes) et des sources de données (DVF, DPE).
- Crée les tables du suivi de score par email (alertes, jetons de confirmation, historique).
- Les index couvrent les requêtes par boîte géographique et les filtres de la carte.

Revision ID: 4c2e8f1a7b90
Revises:
Create Date: 2026-02-03 10:12:44.218305
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# Identifiants Alembic
revision: str = "4c2e8f1a7b90"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Application des changements de schéma."""
    op.create_table(
        "coproprietes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        # --- Identité RNIC ---
        sa.Column("numero_immatriculation", sa.String(length=20), nullable=False),
        sa.Column("date_immatriculation", sa.Date(), nullable=True),
        sa.Column("date_derniere_maj", sa.Date(), nullable=True),
        sa.Column("slug", sa.String(length=255), nullable=True),
        # --- Syndic / représentant légal ---
        sa.Column("type_syndic", sa.String(length=50), nullable=True),
        sa.Column("identification_representant_legal", sa.Text(), nullable=True),
        sa.Column("raison_sociale_representant_legal", sa.Text(), nullable=True),
        sa.Column("siret_representant_legal", sa.String(length=20), nullable=True),
        sa.Column("code_ape", sa.String(length=10), nullable=True),
        sa.Column("commune_representant_legal", sa.String(length=255), nullable=True),
        sa.Column("mandat_en_cours", sa.String(length=100), nullable=True),
        sa.Column("date_fin_dernier_mandat", sa.Date(), nullable=True),
        # --- Adresse ---
        sa.Column("nom_usage", sa.Text(), nullable=True),
        sa.Column("adresse_reference", sa.Text(), nullable=True),
        sa.Column("numero_voie", sa.Text(), nullable=True),
        sa.Column("code_postal", sa.String(length=10), nullable=True),
        sa.Column("commune_adresse", sa.String(length=255), nullable=True),
        sa.Column("adresse_complementaire_1", sa.Text(), nullable=True),
        sa.Column("adresse_complementaire_2", sa.Text(), nullable=True),
        sa.Column("adresse_complementaire_3", sa.Text(), nullable=True),
        sa.Column("nb_adresses_complementaires", sa.Integer(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        # --- Structure juridique ---
        sa.Column("date_reglement_copropriete", sa.Date(), nullable=True),
        sa.Column("residence_service", sa.String(length=20), nullable=True),
        sa.Column("syndicat_cooperatif", sa.String(length=20), nullable=True),
        sa.Column("syndicat_type", sa.String(length=50), nullable=True),
        sa.Column("immatriculation_principal", sa.String(length=20), nullable=True),
        sa.Column("nb_asl", sa.Integer(), nullable=True),
        sa.Column("nb_aful", sa.Integer(), nullable=True),
        sa.Column("nb_unions_syndicats", sa.Integer(), nullable=True),
        # --- Lots / bâti ---
        sa.Column("nb_total_lots", sa.Integer(), nullable=True),
        sa.Column("nb_lots_hab_bur_com", sa.Integer(), nullable=True),
        sa.Column("nb_lots_habitation", sa.Integer(), nullable=True),
        sa.Column("nb_lots_stationnement", sa.Integer(), nullable=True),
        sa.Column("periode_construction", sa.String(length=50), nullable=True),
        # --- Cadastre (3 premières parcelles) ---
        sa.Column("ref_cadastrale_1", sa.String(length=50), nullable=True),
        sa.Column("code_insee_commune_1", sa.String(length=10), nullable=True),
        sa.Column("prefixe_1", sa.String(length=10), nullable=True),
        sa.Column("section_1", sa.String(length=10), nullable=True),
        sa.Column("numero_parcelle_1", sa.String(length=10), nullable=True),
        sa.Column("ref_cadastrale_2", sa.String(length=50), nullable=True),
        sa.Column("code_insee_commune_2", sa.String(length=10), nullable=True),
        sa.Column("prefixe_2", sa.String(length=10), nullable=True),
        sa.Column("section_2", sa.String(length=10), nullable=True),
        sa.Column("numero_parcelle_2", sa.String(length=10), nullable=True),
        sa.Column("ref_cadastrale_3", sa.String(length=50), nullable=True),
        sa.Column("code_insee_commune_3", sa.String(length=10), nullable=True),
        sa.Column("prefixe_3", sa.String(length=10), nullable=True),
        sa.Column("section_3", sa.String(length=10), nullable=True),
        sa.Column("numero_parcelle_3", sa.String(length=10), nullable=True),
        sa.Column("nb_parcelles_cadastrales", sa.Integer(), nullable=True),
        # --- Dispositifs publics ---
        sa.Column("nom_qp_2015", sa.String(length=255), nullable=True),
        sa.Column("code_qp_2015", sa.String(length=20), nullable=True),
        sa.Column("nom_qp_2024", sa.String(length=255), nullable=True),
        sa.Column("code_qp_2024", sa.String(length=20), nullable=True),
        sa.Column("copro_dans_acv", sa.String(length=10), nullable=True),
        sa.Column("copro_dans_pvd", sa.String(length=10), nullable=True),
        sa.Column("code_pdp", sa.String(length=50), nullable=True),
        sa.Column("copro_dans_pdp", sa.Integer(), nullable=True),
        sa.Column("copro_aidee", sa.String(length=10), nullable=True),
        # --- Découpage administratif officiel ---
        sa.Column("code_officiel_commune", sa.String(length=10), nullable=True),
        sa.Column("nom_officiel_commune", sa.String(length=255), nullable=True),
        sa.Column("code_officiel_arrondissement", sa.String(length=10), nullable=True),
        sa.Column("nom_officiel_arrondissement", sa.String(length=255), nullable=True),
        sa.Column("code_officiel_epci", sa.String(length=20), nullable=True),
        sa.Column("nom_officiel_epci", sa.String(length=255), nullable=True),
        sa.Column("code_officiel_departement", sa.String(length=5), nullable=True),
        sa.Column("nom_officiel_departement", sa.String(length=255), nullable=True),
        sa.Column("code_officiel_region", sa.String(length=5), nullable=True),
        sa.Column("nom_officiel_region", sa.String(length=255), nullable=True),
        sa.Column("epci", sa.String(length=255), nullable=True),
        sa.Column("commune", sa.String(length=255), nullable=True),
        # --- Scores (calculate_scores) ---
        sa.Column("score_global", sa.Integer(), nullable=True),
        sa.Column("score_technique", sa.Integer(), nullable=True),
        sa.Column("score_risques", sa.Integer(), nullable=True),
        sa.Column("score_gouvernance", sa.Integer(), nullable=True),
        sa.Column("score_energie", sa.Integer(), nullable=True),
        sa.Column("score_marche", sa.Integer(), nullable=True),
        sa.Column("indice_confiance", sa.Float(), nullable=True),
        # --- Marché DVF (calculate_market) ---
        sa.Column("marche_prix_m2", sa.Float(), nullable=True),
        sa.Column("marche_evolution", sa.Float(), nullable=True),
        sa.Column("marche_nb_transactions", sa.Integer(), nullable=True),
        # --- DPE (calculate_dpe) ---
        sa.Column("dpe_classe_mediane", sa.String(length=1), nullable=True),
        sa.Column("dpe_nb_logements", sa.Integer(), nullable=True),
        sa.Column("dpe_distribution", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero_immatriculation"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index(op.f("ix_coproprietes_code_postal"), "coproprietes", ["code_postal"], unique=False)
    op.create_index(
        op.f("ix_coproprietes_code_officiel_commune"), "coproprietes", ["code_officiel_commune"], unique=False
    )
    op.create_index(
        op.f("ix_coproprietes_code_officiel_departement"), "coproprietes", ["code_officiel_departement"], unique=False
    )
    op.create_index(op.f("ix_coproprietes_score_global"), "coproprietes", ["score_global"], unique=False)
    op.create_index("ix_coproprietes_lat_lon", "coproprietes", ["latitude", "longitude"], unique=False)
    op.create_index(
        "ix_coproprietes_commune_score", "coproprietes", ["code_officiel_commune", "score_global"], unique=False
    )

    op.create_table(
        "dvf_transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id_mutation", sa.String(length=50), nullable=False),
        sa.Column("date_mutation", sa.Date(), nullable=False),
        sa.Column("prix", sa.Float(), nullable=False),
        sa.Column("surface", sa.Float(), nullable=True),
        sa.Column("nb_pieces", sa.Integer(), nullable=True),
        sa.Column("code_postal", sa.String(length=10), nullable=True),
        sa.Column("code_commune", sa.String(length=10), nullable=True),
        sa.Column("adresse", sa.Text(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("id_mutation", "prix", "surface", "adresse", name="uq_dvf_mutation_lot"),
    )
    op.create_index(op.f("ix_dvf_transactions_date_mutation"), "dvf_transactions", ["date_mutation"], unique=False)
    op.create_index("ix_dvf_lat_lon", "dvf_transactions", ["latitude", "longitude"], unique=False)

    op.create_table(
        "dpe_logements",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("numero_dpe", sa.String(length=50), nullable=False),
        sa.Column("date_dpe", sa.Date(), nullable=True),
        sa.Column("classe_dpe", sa.String(length=1), nullable=True),
        sa.Column("classe_ges", sa.String(length=1), nullable=True),
        sa.Column("code_postal", sa.String(length=10), nullable=True),
        sa.Column("code_insee", sa.String(length=10), nullable=True),
        sa.Column("adresse", sa.Text(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("numero_immatriculation_copropriete", sa.String(length=20), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero_dpe"),
    )
    op.create_index(
        op.f("ix_dpe_logements_numero_immatriculation_copropriete"),
        "dpe_logements",
        ["numero_immatriculation_copropriete"],
        unique=False,
    )
    op.create_index("ix_dpe_lat_lon", "dpe_logements", ["latitude", "longitude"], unique=False)

    op.create_table(
        "score_alerts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("copro_id", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["copro_id"], ["coproprietes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", "copro_id", name="uq_score_alerts_email_copro"),
    )
    op.create_index(op.f("ix_score_alerts_email"), "score_alerts", ["email"], unique=False)
    op.create_index(op.f("ix_score_alerts_copro_id"), "score_alerts", ["copro_id"], unique=False)
    op.create_index(op.f("ix_score_alerts_created_at"), "score_alerts", ["created_at"], unique=False)

    op.create_table(
        "alert_confirmations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("alert_id", sa.Integer(), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["alert_id"], ["score_alerts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
    )
    op.create_index(op.f("ix_alert_confirmations_alert_id"), "alert_confirmations", ["alert_id"], unique=False)

    op.create_table(
        "score_alert_events",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("alert_id", sa.Integer(), nullable=False),
        sa.Column("event_type", sa.String(length=30), nullable=False),
        sa.Column("old_score", sa.Integer(), nullable=True),
        sa.Column("new_score", sa.Integer(), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["alert_id"], ["score_alerts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_score_alert_events_alert_id"), "score_alert_events", ["alert_id"], unique=False)
    op.create_index(op.f("ix_score_alert_events_request_id"), "score_alert_events", ["request_id"], unique=False)
    op.create_index(op.f("ix_score_alert_events_created_at"), "score_alert_events", ["created_at"], unique=False)


def downgrade() -> None:
    """Retour arrière des changements de schéma."""
    op.drop_table("score_alert_events")
    op.drop_table("alert_confirmations")
    op.drop_table("score_alerts")
    op.drop_table("dpe_logements")
    op.drop_table("dvf_transactions")
    op.drop_table("coproprietes")
