# scripts/calculate_market.py
from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import text

# Permet de lancer le script depuis la racine du dépôt sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import make_sync_session_factory
from app.models.copropriete import Copropriete
from app.services.market_service import MarketStats, market_stats_for
from scripts.batch_utils import Timer, bulk_update_copros, iter_copro_batches

"""
Script CLI: calculate_market

Rôle (fonctionnel) :
- Calcule pour chaque copropriété géolocalisée les indicateurs de marché DVF dans un rayon de 500 m :
  prix moyen au m², évolution (12 derniers mois vs 12-36 mois), nombre de transactions.
- Les copropriétés sans aucune vente dans le rayon ne sont pas modifiées.
- Écriture par lots (UPDATE groupé par id), commit par lot.
"""

DEFAULT_BATCH_SIZE = 500
PROGRESS_EVERY = 10_000


def market_columns(copro_id: int, stats: MarketStats) -> Dict[str, Any]:
    return {
        "id": copro_id,
        "marche_prix_m2": stats.prix_m2,
        "marche_evolution": stats.evolution,
        "marche_nb_transactions": stats.nb_transactions,
    }


def print_stats(db) -> None:
    row = db.execute(
        text(
            """
            SELECT
              count(*) AS with_market_data,
              round(avg(marche_prix_m2)::numeric, 0) AS avg_prix_m2,
              round(avg(marche_evolution)::numeric, 1) AS avg_evolution,
              round(avg(marche_nb_transactions)::numeric, 0) AS avg_nb_tx
            FROM coproprietes
            WHERE marche_prix_m2 IS NOT NULL
            """
        )
    ).mappings().one()
    print("Stats marché :", dict(row))


def run(batch_size: int, dry_run: bool = False, today: Optional[date] = None) -> int:
    print("Calcul des données de marché (DVF, rayon 500 m)…")
    timer = Timer()
    SessionLocal = make_sync_session_factory()

    processed = 0
    with_data = 0
    with SessionLocal() as db:
        batches = iter_copro_batches(
            db,
            [Copropriete.latitude, Copropriete.longitude],
            batch_size,
            Copropriete.latitude.is_not(None),
            Copropriete.longitude.is_not(None),
        )
        for rows in batches:
            updates = []
            for row in rows:
                stats = market_stats_for(db, row.latitude, row.longitude, today=today)
                if stats is None:
                    continue
                updates.append(market_columns(row.id, stats))

            with_data += len(updates)
            processed += len(rows)
            if not dry_run:
                bulk_update_copros(db, updates)
                db.commit()

            if processed % PROGRESS_EVERY < batch_size:
                print(f"… {processed:,} copros traitées, {with_data:,} avec données marché ({timer.elapsed})")

        print(f"✅ Marché : {processed:,} copros traitées, {with_data:,} avec données ({timer.elapsed})")
        if not dry_run:
            print_stats(db)
    return with_data


def main():
    parser = argparse.ArgumentParser(description="Calcul des indicateurs de marché DVF par copropriété")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Copropriétés par lot")
    parser.add_argument("--dry-run", action="store_true", help="Calcule sans écrire en base")
    args = parser.parse_args()

    run(args.batch_size, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
