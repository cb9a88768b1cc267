from __future__ import annotations

import re
import time
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models.copropriete import Copropriete

"""
Outils communs aux scripts batch (import / calcul).

Rôle (fonctionnel) :
- Conversions tolérantes des cellules CSV (texte brut, "non connu", vides).
- Parcours des copropriétés par curseur sur l’id (lots ordonnés, reprise simple).
- Mise à jour groupée par clé primaire (bulk UPDATE ORM).
- Chronomètre pour les lignes de progression.
"""

UNKNOWN_VALUES = {"", "non connu"}

_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")
_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%Y/%m/%d")


def clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if text in UNKNOWN_VALUES:
        return None
    return text


def parse_int(value: Any) -> Optional[int]:
    # "12", "12.0", "12 lots" -> 12
    text = clean_str(value)
    if text is None:
        return None
    m = _INT_PREFIX_RE.match(text)
    return int(m.group(1)) if m else None


def parse_float(value: Any) -> Optional[float]:
    text = clean_str(value)
    if text is None:
        return None
    try:
        return float(text.replace(",", "."))
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    text = clean_str(value)
    if text is None:
        return None
    # Horodatage ISO complet : on garde la partie date
    head = text[:10]
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(head, fmt).date()
        except ValueError:
            continue
    return None


def iter_copro_batches(
    db: Session,
    columns: Sequence[Any],
    batch_size: int,
    *conditions: Any,
) -> Iterator[List[Any]]:
    """Lots de lignes (id + columns) triées par id, curseur strictement croissant."""
    cursor = 0
    while True:
        stmt = (
            select(Copropriete.id, *columns)
            .where(Copropriete.id > cursor, *conditions)
            .order_by(Copropriete.id.asc())
            .limit(batch_size)
        )
        rows = db.execute(stmt).all()
        if not rows:
            return
        yield rows
        cursor = rows[-1].id


def bulk_update_copros(db: Session, updates: List[Dict[str, Any]]) -> int:
    """UPDATE par clé primaire : chaque dict porte "id" + les colonnes à écrire."""
    if not updates:
        return 0
    db.execute(update(Copropriete), updates)
    return len(updates)


class Timer:
    def __init__(self) -> None:
        self.start = time.perf_counter()

    @property
    def elapsed(self) -> str:
        return f"{time.perf_counter() - self.start:.1f}s"
