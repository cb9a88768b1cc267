# scripts/import_rnic.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Tuple

import pandas as pd
from sqlalchemy.dialects.postgresql import insert as pg_insert

# Permet de lancer le script depuis la racine du dépôt sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from app.core.settings import settings
from app.db.session import make_sync_session_factory
from app.models.copropriete import Copropriete
from scripts.batch_utils import Timer, clean_str, parse_date, parse_float, parse_int

"""
Script CLI: import_rnic

Rôle (fonctionnel) :
- Importe l’export CSV du Registre National d’Immatriculation des Copropriétés (RNIC)
  dans la table coproprietes.
- Lecture par morceaux (pandas, chunksize) : le fichier complet dépasse le million de lignes.
- "non connu" / cellule vide -> NULL ; entiers, décimaux et dates convertis de façon tolérante.
- Insertion par lots avec ON CONFLICT DO NOTHING sur numero_immatriculation :
  un ré-import n’écrase rien et ne duplique rien.
- Les lignes invalides (sans numéro d’immatriculation) sont comptées et ignorées.

Les colonnes dérivées (slug, marche_*, dpe_*, score_*) sont calculées par les scripts suivants :
generate_slugs, calculate_market, calculate_dpe, calculate_scores.
"""

DEFAULT_BATCH_SIZE = 1000
PROGRESS_EVERY = 50_000
MAX_REPORTED_ERRORS = 5

Parser = Callable[[Any], Any]

# (colonne CSV, attribut Copropriete, conversion)
RNIC_COLUMNS: List[Tuple[str, str, Parser]] = [
    ("date_d_immatriculation", "date_immatriculation", parse_date),
    ("date_de_la_derniere_maj", "date_derniere_maj", parse_date),
    ("type_de_syndic_benevole_professionnel_non_connu", "type_syndic", clean_str),
    ("identification_du_representant_legal_raison_sociale_et_le_numer", "identification_representant_legal", clean_str),
    ("raison_sociale_du_representant_legal", "raison_sociale_representant_legal", clean_str),
    ("siret_du_representant_legal", "siret_representant_legal", clean_str),
    ("code_ape", "code_ape", clean_str),
    ("commune_du_representant_legal", "commune_representant_legal", clean_str),
    ("mandat_en_cours_dans_la_copropriete", "mandat_en_cours", clean_str),
    ("date_de_fin_du_dernier_mandat", "date_fin_dernier_mandat", parse_date),
    ("nom_d_usage_de_la_copropriete", "nom_usage", clean_str),
    ("adresse_de_reference", "adresse_reference", clean_str),
    ("numero_et_voie_adresse_de_reference", "numero_voie", clean_str),
    ("code_postal_adresse_de_reference", "code_postal", clean_str),
    ("commune_adresse_de_reference", "commune_adresse", clean_str),
    ("adresse_complementaire_1", "adresse_complementaire_1", clean_str),
    ("adresse_complementaire_2", "adresse_complementaire_2", clean_str),
    ("adresse_complementaire_3", "adresse_complementaire_3", clean_str),
    ("nombre_d_adresses_complementaires", "nb_adresses_complementaires", parse_int),
    ("long", "longitude", parse_float),
    ("lat", "latitude", parse_float),
    ("date_du_reglement_de_copropriete", "date_reglement_copropriete", parse_date),
    ("residence_service", "residence_service", clean_str),
    ("syndicat_cooperatif", "syndicat_cooperatif", clean_str),
    ("syndicat_principal_ou_syndicat_secondaire", "syndicat_type", clean_str),
    ("si_secondaire_n_d_immatriculation_du_principal", "immatriculation_principal", clean_str),
    ("nombre_d_asl_auxquelles_est_rattache_le_syndicat_de_coproprieta", "nb_asl", parse_int),
    ("nombre_d_aful_auxquelles_est_rattache_le_syndicat_de_copropriet", "nb_aful", parse_int),
    ("nombre_d_unions_de_syndicats_auxquelles_est_rattache_le_syndica", "nb_unions_syndicats", parse_int),
    ("nombre_total_de_lots", "nb_total_lots", parse_int),
    ("nombre_total_de_lots_a_usage_d_habitation_de_bureaux_ou_de_comm", "nb_lots_hab_bur_com", parse_int),
    ("nombre_de_lots_a_usage_d_habitation", "nb_lots_habitation", parse_int),
    ("nombre_de_lots_de_stationnement", "nb_lots_stationnement", parse_int),
    ("periode_de_construction", "periode_construction", clean_str),
    ("reference_cadastrale_1", "ref_cadastrale_1", clean_str),
    ("code_insee_commune_1", "code_insee_commune_1", clean_str),
    ("prefixe_1", "prefixe_1", clean_str),
    ("section_1", "section_1", clean_str),
    ("numero_parcelle_1", "numero_parcelle_1", clean_str),
    ("reference_cadastrale_2", "ref_cadastrale_2", clean_str),
    ("code_insee_commune_2", "code_insee_commune_2", clean_str),
    ("prefixe_2", "prefixe_2", clean_str),
    ("section_2", "section_2", clean_str),
    ("numero_parcelle_2", "numero_parcelle_2", clean_str),
    ("reference_cadastrale_3", "ref_cadastrale_3", clean_str),
    ("code_insee_commune_3", "code_insee_commune_3", clean_str),
    ("prefixe_3", "prefixe_3", clean_str),
    ("section_3", "section_3", clean_str),
    ("numero_parcelle_3", "numero_parcelle_3", clean_str),
    ("nombre_de_parcelles_cadastrales", "nb_parcelles_cadastrales", parse_int),
    ("nom_qp_2015", "nom_qp_2015", clean_str),
    ("code_qp_2015", "code_qp_2015", clean_str),
    ("nom_qp_2024", "nom_qp_2024", clean_str),
    ("code_qp_2024", "code_qp_2024", clean_str),
    ("copro_dans_acv", "copro_dans_acv", clean_str),
    ("copro_dans_pvd", "copro_dans_pvd", clean_str),
    ("code_de_pdp", "code_pdp", clean_str),
    ("copro_dans_pdp", "copro_dans_pdp", parse_int),
    ("copro_aidee", "copro_aidee", clean_str),
    ("code_officiel_commune", "code_officiel_commune", clean_str),
    ("nom_officiel_commune", "nom_officiel_commune", clean_str),
    ("code_officiel_arrondissement_commune", "code_officiel_arrondissement", clean_str),
    ("nom_officiel_arrondissement_commune", "nom_officiel_arrondissement", clean_str),
    ("code_officiel_epci", "code_officiel_epci", clean_str),
    ("nom_officiel_epci", "nom_officiel_epci", clean_str),
    ("code_officiel_departement", "code_officiel_departement", clean_str),
    ("nom_officiel_departement", "nom_officiel_departement", clean_str),
    ("code_officiel_region", "code_officiel_region", clean_str),
    ("nom_officiel_region", "nom_officiel_region", clean_str),
    ("epci", "epci", clean_str),
    ("commune", "commune", clean_str),
]


def map_rnic_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Ligne CSV RNIC -> colonnes coproprietes. ValueError si le numéro manque."""
    numero = clean_str(row.get("numero_d_immatriculation"))
    if numero is None:
        raise ValueError("numero_d_immatriculation manquant")

    record: Dict[str, Any] = {"numero_immatriculation": numero}
    for csv_col, attr, parse in RNIC_COLUMNS:
        record[attr] = parse(row.get(csv_col))
    return record


def flush_batch(db, batch: List[Dict[str, Any]]) -> None:
    stmt = pg_insert(Copropriete).on_conflict_do_nothing(index_elements=["numero_immatriculation"])
    db.execute(stmt, batch)
    db.commit()


def run(csv_path: str, batch_size: int, dry_run: bool = False) -> Tuple[int, int]:
    print(f"Import RNIC depuis : {csv_path}")
    timer = Timer()
    SessionLocal = make_sync_session_factory()

    total = 0
    errors = 0
    batch: List[Dict[str, Any]] = []

    chunks = pd.read_csv(
        csv_path,
        dtype=str,
        keep_default_na=False,
        chunksize=batch_size,
        on_bad_lines="skip",
    )

    with SessionLocal() as db:
        for chunk in chunks:
            for line_no, row in enumerate(chunk.to_dict("records"), start=total + len(batch) + 1):
                try:
                    batch.append(map_rnic_row(row))
                except ValueError as e:
                    errors += 1
                    if errors <= MAX_REPORTED_ERRORS:
                        print(f"⚠️  Ligne ~{line_no} ignorée : {e}")

                if len(batch) >= batch_size:
                    if not dry_run:
                        flush_batch(db, batch)
                    total += len(batch)
                    batch = []
                    if total % PROGRESS_EVERY == 0:
                        print(f"… {total:,} lignes importées ({timer.elapsed})")

        if batch:
            if not dry_run:
                flush_batch(db, batch)
            total += len(batch)

    print(f"✅ Import RNIC terminé : {total:,} lignes en {timer.elapsed}")
    if errors:
        print(f"   - Lignes ignorées (erreurs) : {errors}")
    return total, errors


def main():
    parser = argparse.ArgumentParser(description="Import du registre RNIC (CSV) dans coproprietes")
    parser.add_argument("--csv", default=settings.RNIC_CSV_PATH, help="Chemin du CSV RNIC")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Taille des lots d’insertion")
    parser.add_argument("--dry-run", action="store_true", help="Lit et convertit sans écrire en base")
    args = parser.parse_args()

    run(args.csv, args.batch_size, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
