# scripts/calculate_dpe.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict

from sqlalchemy import text

# Permet de lancer le script depuis la racine du dépôt sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import make_sync_session_factory
from app.models.copropriete import Copropriete
from app.services.dpe_service import DpeMatch, match_dpe
from scripts.batch_utils import Timer, bulk_update_copros, iter_copro_batches

"""
Script CLI: calculate_dpe

Rôle (fonctionnel) :
- Rattache les DPE logements à chaque copropriété :
  1) par numéro d’immatriculation saisi dans le DPE,
  2) sinon par proximité (50 m autour des coordonnées RNIC).
- Écrit la classe médiane, le nombre de logements et la distribution A..G.
- Les copropriétés sans DPE rattaché ne sont pas modifiées.
"""

DEFAULT_BATCH_SIZE = 500
PROGRESS_EVERY = 10_000


def dpe_columns(copro_id: int, match: DpeMatch) -> Dict[str, Any]:
    return {
        "id": copro_id,
        "dpe_classe_mediane": match.median,
        "dpe_nb_logements": match.nb_logements,
        "dpe_distribution": match.distribution,
    }


def print_distribution(db) -> None:
    rows = db.execute(
        text(
            """
            SELECT dpe_classe_mediane, count(*) AS nb
            FROM coproprietes
            WHERE dpe_classe_mediane IS NOT NULL
            GROUP BY dpe_classe_mediane
            ORDER BY dpe_classe_mediane
            """
        )
    ).all()
    print("\nClasse DPE médiane des copropriétés :")
    for classe, nb in rows:
        print(f"   {classe} : {nb:,}")


def run(batch_size: int, dry_run: bool = False) -> int:
    print("Rattachement des DPE aux copropriétés…")
    timer = Timer()
    SessionLocal = make_sync_session_factory()

    processed = 0
    with_dpe = 0
    direct = 0
    with SessionLocal() as db:
        columns = [Copropriete.numero_immatriculation, Copropriete.latitude, Copropriete.longitude]
        for rows in iter_copro_batches(db, columns, batch_size):
            updates = []
            for row in rows:
                match = match_dpe(db, row.numero_immatriculation, row.latitude, row.longitude)
                if not match.classes:
                    continue
                if match.direct:
                    direct += 1
                updates.append(dpe_columns(row.id, match))

            with_dpe += len(updates)
            processed += len(rows)
            if not dry_run:
                bulk_update_copros(db, updates)
                db.commit()

            if processed % PROGRESS_EVERY < batch_size:
                print(f"… {processed:,} copros, {with_dpe:,} avec DPE ({direct} directs) ({timer.elapsed})")

        print(f"✅ DPE : {processed:,} copros traitées, {with_dpe:,} avec DPE ({direct} rattachements directs) ({timer.elapsed})")
        if not dry_run:
            print_distribution(db)
    return with_dpe


def main():
    parser = argparse.ArgumentParser(description="Rattachement DPE -> copropriétés (classe médiane, distribution)")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Copropriétés par lot")
    parser.add_argument("--dry-run", action="store_true", help="Calcule sans écrire en base")
    args = parser.parse_args()

    run(args.batch_size, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
