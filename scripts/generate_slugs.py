# scripts/generate_slugs.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sqlalchemy import select, update

# Permet de lancer le script depuis la racine du dépôt sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import make_sync_session_factory
from app.models.copropriete import Copropriete
from app.services.slugs import unique_copro_slugs
from scripts.batch_utils import Timer, bulk_update_copros

"""
Script CLI: generate_slugs

Rôle (fonctionnel) :
- Génère le slug public de chaque copropriété : "score-copropriete-" + adresse (ou code postal).
- Collisions résolues dans l’ordre des id : -2, -3…
- Les slugs existants sont remis à NULL puis réécrits dans la même transaction
  (la contrainte d’unicité ne bloque pas un échange de slug entre deux lignes).
"""

DEFAULT_BATCH_SIZE = 5000


def run(batch_size: int, dry_run: bool = False) -> int:
    print("Lecture des copropriétés…")
    timer = Timer()
    SessionLocal = make_sync_session_factory()

    with SessionLocal() as db:
        rows = db.execute(
            select(Copropriete.id, Copropriete.adresse_reference, Copropriete.code_postal).order_by(Copropriete.id)
        ).all()
        print(f"   {len(rows):,} lignes lues")

        updates = []
        collisions = 0
        for copro_id, slug, collision in unique_copro_slugs(rows):
            collisions += collision
            updates.append({"id": copro_id, "slug": slug})
        print(f"   {len(updates):,} slugs générés ({collisions} collisions résolues)")

        if dry_run:
            return len(updates)

        db.execute(update(Copropriete).values(slug=None))
        for i in range(0, len(updates), batch_size):
            bulk_update_copros(db, updates[i : i + batch_size])
            print(f"… {min(i + batch_size, len(updates)):,}/{len(updates):,} mis à jour")
        db.commit()

    print(f"✅ Slugs générés en {timer.elapsed}")
    return len(updates)


def main():
    parser = argparse.ArgumentParser(description="Génération des slugs uniques des copropriétés")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Lignes par UPDATE groupé")
    parser.add_argument("--dry-run", action="store_true", help="Calcule sans écrire en base")
    args = parser.parse_args()

    run(args.batch_size, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
