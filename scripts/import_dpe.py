# scripts/import_dpe.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.dialects.postgresql import insert as pg_insert

# Permet de lancer le script depuis la racine du dépôt sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from app.core.settings import settings
from app.db.session import make_sync_session_factory
from app.models.dpe_logement import DpeLogement
from app.services.dpe_service import DPE_ORDER
from scripts.batch_utils import Timer, clean_str, parse_date, parse_float

"""
Script CLI: import_dpe

Rôle (fonctionnel) :
- Importe le CSV des DPE logements existants (produit par download_dpe) dans dpe_logements.
- Ignore les lignes sans étiquette A..G.
- Coordonnées à 0 (adresse non géocodée par la BAN) -> NULL.
- Insertion par lots, numero_dpe déjà présent ignoré.
"""

DEFAULT_BATCH_SIZE = 2000
PROGRESS_EVERY = 200_000
VALID_CLASSES = set(DPE_ORDER)


def _coordinate(value: Any) -> Optional[float]:
    v = parse_float(value)
    return v if v else None


def map_dpe_row(row: Mapping[str, Any], fallback_index: int = 0) -> Optional[Dict[str, Any]]:
    """Ligne CSV ADEME -> colonnes dpe_logements ; None si l’étiquette est absente ou invalide."""
    classe = clean_str(row.get("etiquette_dpe"))
    if classe not in VALID_CLASSES:
        return None

    return {
        "numero_dpe": clean_str(row.get("numero_dpe")) or f"unknown_{fallback_index}",
        "date_dpe": parse_date(row.get("date_etablissement_dpe")),
        "classe_dpe": classe,
        "classe_ges": clean_str(row.get("etiquette_ges")),
        "code_postal": clean_str(row.get("code_postal_ban")),
        "code_insee": clean_str(row.get("code_insee_ban")),
        "adresse": clean_str(row.get("adresse_ban")),
        "longitude": _coordinate(row.get("coordonnee_cartographique_x_ban")),
        "latitude": _coordinate(row.get("coordonnee_cartographique_y_ban")),
        "numero_immatriculation_copropriete": clean_str(row.get("numero_immatriculation_copropriete")),
    }


def flush_batch(db, batch: List[Dict[str, Any]]) -> None:
    stmt = pg_insert(DpeLogement).on_conflict_do_nothing(index_elements=["numero_dpe"])
    db.execute(stmt, batch)
    db.commit()


def print_distribution(db) -> None:
    rows = db.execute(
        text("SELECT classe_dpe, count(*) AS nb FROM dpe_logements GROUP BY classe_dpe ORDER BY classe_dpe")
    ).all()
    print("\nDistribution :")
    for classe, nb in rows:
        print(f"   {classe} : {nb:,}")


def run(csv_path: str, batch_size: int, dry_run: bool = False) -> int:
    print(f"Import DPE depuis : {csv_path}")
    timer = Timer()
    SessionLocal = make_sync_session_factory()

    total = 0
    skipped = 0
    batch: List[Dict[str, Any]] = []

    chunks = pd.read_csv(csv_path, dtype=str, keep_default_na=False, chunksize=50_000)
    with SessionLocal() as db:
        for chunk in chunks:
            for row in chunk.to_dict("records"):
                record = map_dpe_row(row, fallback_index=total + len(batch))
                if record is None:
                    skipped += 1
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

        print(f"✅ Import DPE terminé : {total:,} DPE importés, {skipped:,} ignorés ({timer.elapsed})")
        if not dry_run:
            print_distribution(db)
    return total


def main():
    parser = argparse.ArgumentParser(description="Import des DPE logements (CSV ADEME) dans dpe_logements")
    parser.add_argument("--csv", default=settings.DPE_CSV_PATH, help="Chemin du CSV DPE")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Taille des lots d’insertion")
    parser.add_argument("--dry-run", action="store_true", help="Lit et filtre sans écrire en base")
    args = parser.parse_args()

    run(args.csv, args.batch_size, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
