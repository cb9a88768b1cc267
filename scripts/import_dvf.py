# scripts/import_dvf.py
from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd
from sqlalchemy import text
from sqlalchemy.dialects.postgresql import insert as pg_insert

# Permet de lancer le script depuis la racine du dépôt sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from app.core.settings import settings
from app.db.session import make_sync_session_factory
from app.models.dvf_transaction import DvfTransaction
from scripts.batch_utils import Timer, clean_str, parse_float, parse_int

"""
Script CLI: import_dvf

Rôle (fonctionnel) :
- Importe les Demandes de Valeurs Foncières géolocalisées ({DVF_DIR}/{année}.csv.gz).
- Ne garde que les ventes d’appartements avec prix et surface bâtie renseignés.
- Écarte les prix au m² aberrants (< 500 €/m² ou > 30 000 €/m²).
- Insertion par lots, doublons ignorés via la contrainte uq_dvf_mutation_lot.
- Affiche des statistiques globales en fin d’import.
"""

DEFAULT_YEARS = ["2023", "2024", "2025"]
DEFAULT_BATCH_SIZE = 2000
PROGRESS_EVERY = 100_000

MIN_PRIX_M2 = 500
MAX_PRIX_M2 = 30_000


def _parse_iso_date(value: Any) -> Optional[date]:
    text_value = clean_str(value)
    if text_value is None:
        return None
    try:
        return date.fromisoformat(text_value[:10])
    except ValueError:
        return None


def map_dvf_row(row: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Ligne DVF -> colonnes dvf_transactions.

    None si la ligne n’est pas une vente d’appartement exploitable (nature, type, prix,
    surface ou date manquants). Le filtre des prix aberrants est appliqué à part (is_outlier).
    """
    if row.get("nature_mutation") != "Vente" or row.get("type_local") != "Appartement":
        return None

    prix = parse_float(row.get("valeur_fonciere"))
    surface = parse_float(row.get("surface_reelle_bati"))
    if not prix or prix <= 0 or not surface or surface <= 0:
        return None

    date_mutation = _parse_iso_date(row.get("date_mutation"))
    id_mutation = clean_str(row.get("id_mutation"))
    if date_mutation is None or id_mutation is None:
        return None

    parts = [clean_str(row.get("adresse_numero")), clean_str(row.get("adresse_nom_voie"))]
    adresse = " ".join(p for p in parts if p) or None

    return {
        "id_mutation": id_mutation,
        "date_mutation": date_mutation,
        "prix": prix,
        "surface": surface,
        "nb_pieces": parse_int(row.get("nombre_pieces_principales")),
        "code_postal": clean_str(row.get("code_postal")),
        "code_commune": clean_str(row.get("code_commune")),
        "adresse": adresse,
        "longitude": parse_float(row.get("longitude")),
        "latitude": parse_float(row.get("latitude")),
    }


def is_outlier(record: Mapping[str, Any]) -> bool:
    prix_m2 = record["prix"] / record["surface"]
    return prix_m2 < MIN_PRIX_M2 or prix_m2 > MAX_PRIX_M2


def flush_batch(db, batch: List[Dict[str, Any]]) -> None:
    stmt = pg_insert(DvfTransaction).on_conflict_do_nothing(constraint="uq_dvf_mutation_lot")
    db.execute(stmt, batch)
    db.commit()


def import_year(db, dvf_dir: Path, year: str, batch_size: int, dry_run: bool) -> int:
    path = dvf_dir / f"{year}.csv.gz"
    print(f"\nImport {year} depuis {path}…")
    timer = Timer()

    total = 0
    outliers = 0
    batch: List[Dict[str, Any]] = []

    chunks = pd.read_csv(path, dtype=str, keep_default_na=False, chunksize=50_000, low_memory=False)
    for chunk in chunks:
        for row in chunk.to_dict("records"):
            record = map_dvf_row(row)
            if record is None:
                continue
            if is_outlier(record):
                outliers += 1
                continue

            batch.append(record)
            if len(batch) >= batch_size:
                if not dry_run:
                    flush_batch(db, batch)
                total += len(batch)
                batch = []
                if total % PROGRESS_EVERY == 0:
                    print(f"… {total:,} lignes ({timer.elapsed})")

    if batch:
        if not dry_run:
            flush_batch(db, batch)
        total += len(batch)

    print(f"   {year} : {total:,} appartements importés, {outliers} prix aberrants écartés ({timer.elapsed})")
    return total


def print_stats(db) -> None:
    row = db.execute(
        text(
            """
            SELECT
              count(*) AS total,
              round(avg(prix / NULLIF(surface, 0))::numeric, 0) AS avg_prix_m2,
              min(date_mutation) AS min_date,
              max(date_mutation) AS max_date,
              count(*) FILTER (WHERE longitude IS NOT NULL) AS geocoded
            FROM dvf_transactions
            """
        )
    ).mappings().one()
    print("\nStats :", dict(row))


def run(dvf_dir: str, years: Sequence[str], batch_size: int, dry_run: bool = False) -> int:
    print("Import des ventes d’appartements DVF…")
    timer = Timer()
    SessionLocal = make_sync_session_factory()

    grand_total = 0
    with SessionLocal() as db:
        for year in years:
            grand_total += import_year(db, Path(dvf_dir), year, batch_size, dry_run)

        print(f"\n✅ Import DVF terminé : {grand_total:,} transactions en {timer.elapsed}")
        if not dry_run:
            print_stats(db)
    return grand_total


def main():
    parser = argparse.ArgumentParser(description="Import des ventes DVF (appartements) dans dvf_transactions")
    parser.add_argument("--dir", default=settings.DVF_DIR, help="Dossier contenant les fichiers {année}.csv.gz")
    parser.add_argument("--years", nargs="+", default=DEFAULT_YEARS, help="Années à importer")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Taille des lots d’insertion")
    parser.add_argument("--dry-run", action="store_true", help="Lit et filtre sans écrire en base")
    args = parser.parse_args()

    run(args.dir, args.years, args.batch_size, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
