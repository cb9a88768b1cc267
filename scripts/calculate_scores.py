# scripts/calculate_scores.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from sqlalchemy import select, text

# Permet de lancer le script depuis la racine du dépôt sans souci d'import
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import make_sync_session_factory
from app.models.copropriete import Copropriete
from app.models.score_alert import ScoreAlert
from app.models.score_alert_event import EVENT_SCORE_CHANGED, ScoreAlertEvent
from app.services.scoring_service import ScoreInput, calculate_score
from scripts.batch_utils import Timer, bulk_update_copros, iter_copro_batches

"""
Script CLI: calculate_scores

Rôle (fonctionnel) :
- Recalcule le CoproScore (5 dimensions, brut /120 ramené sur 100) de toutes les copropriétés
  à partir des colonnes RNIC + marché + DPE déjà en base.
- Écrit score_* et indice_confiance par lots (UPDATE groupé par id).
- Pour chaque copropriété dont le score global change et qui est suivie par des alertes actives :
  écrit un événement SCORE_CHANGED par alerte (file des notifications à envoyer).
- Affiche la distribution finale (moyenne, min, max, bon / moyen / mauvais).

À lancer après calculate_market et calculate_dpe.
"""

DEFAULT_BATCH_SIZE = 5000
PROGRESS_EVERY = 50_000

INPUT_COLUMNS = [
    Copropriete.periode_construction,
    Copropriete.copro_dans_pdp,
    Copropriete.type_syndic,
    Copropriete.syndicat_cooperatif,
    Copropriete.marche_evolution,
    Copropriete.marche_nb_transactions,
    Copropriete.dpe_classe_mediane,
    Copropriete.score_global,
]


def score_row(row: Any) -> Tuple[Dict[str, Any], Any, int]:
    """(colonnes à écrire, ancien score, nouveau score) pour une ligne du lot."""
    result = calculate_score(ScoreInput.from_copro(row))
    columns = {"id": row.id, **result.as_columns()}
    return columns, row.score_global, result.score_global


def score_change_events(
    changes: Mapping[int, Tuple[int, int]],
    alerts: Iterable[Tuple[int, int]],
) -> List[ScoreAlertEvent]:
    """
    Un événement SCORE_CHANGED par alerte active dont la copropriété a changé de score.

    changes : copro_id -> (ancien, nouveau) ; alerts : (alert_id, copro_id).
    """
    events = []
    for alert_id, copro_id in alerts:
        if copro_id not in changes:
            continue
        old, new = changes[copro_id]
        events.append(
            ScoreAlertEvent(
                alert_id=alert_id,
                event_type=EVENT_SCORE_CHANGED,
                old_score=old,
                new_score=new,
                message=f"Score passé de {old} à {new}",
            )
        )
    return events


def active_alerts_for(db, copro_ids: Iterable[int]) -> List[Tuple[int, int]]:
    ids = list(copro_ids)
    if not ids:
        return []
    stmt = select(ScoreAlert.id, ScoreAlert.copro_id).where(
        ScoreAlert.copro_id.in_(ids),
        ScoreAlert.active.is_(True),
    )
    return [(r.id, r.copro_id) for r in db.execute(stmt).all()]


def print_distribution(db) -> None:
    row = db.execute(
        text(
            """
            SELECT
              round(avg(score_global), 1) AS avg_score,
              min(score_global) AS min_score,
              max(score_global) AS max_score,
              count(*) FILTER (WHERE score_global >= 70) AS bon,
              count(*) FILTER (WHERE score_global >= 40 AND score_global < 70) AS moyen,
              count(*) FILTER (WHERE score_global < 40) AS mauvais
            FROM coproprietes
            WHERE score_global IS NOT NULL
            """
        )
    ).mappings().one()
    print("\nDistribution des scores :", dict(row))


def run(batch_size: int, dry_run: bool = False) -> Tuple[int, int]:
    print("Calcul des scores (5 dimensions, /120 -> /100)…")
    timer = Timer()
    SessionLocal = make_sync_session_factory()

    processed = 0
    events_count = 0
    with SessionLocal() as db:
        for rows in iter_copro_batches(db, INPUT_COLUMNS, batch_size):
            updates = []
            changes: Dict[int, Tuple[int, int]] = {}
            for row in rows:
                columns, old, new = score_row(row)
                updates.append(columns)
                # Premier calcul (ancien score NULL) : rien à notifier
                if old is not None and old != new:
                    changes[row.id] = (old, new)

            processed += len(rows)
            if dry_run:
                continue

            bulk_update_copros(db, updates)
            events = score_change_events(changes, active_alerts_for(db, changes.keys()))
            db.add_all(events)
            events_count += len(events)
            db.commit()

            if processed % PROGRESS_EVERY < batch_size:
                print(f"… {processed:,} copros scorées ({timer.elapsed})")

        print(f"✅ Scores : {processed:,} copros en {timer.elapsed}")
        print(f"   - Événements SCORE_CHANGED créés : {events_count}")
        if not dry_run:
            print_distribution(db)
    return processed, events_count


def main():
    parser = argparse.ArgumentParser(description="Recalcul du CoproScore de toutes les copropriétés")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Copropriétés par lot")
    parser.add_argument("--dry-run", action="store_true", help="Calcule sans écrire en base")
    args = parser.parse_args()

    run(args.batch_size, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
