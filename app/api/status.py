from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.copropriete import Copropriete
from app.models.dpe_logement import DpeLogement
from app.models.dvf_transaction import DvfTransaction

"""
API System Status.

Rôle (fonctionnel) :
- Vérifie la disponibilité de la base (requête simple).
- Expose le volume des données chargées (copropriétés, scorées, DVF, DPE).
- Fournit une information de fraîcheur : date de la dernière vente DVF importée.
"""

router = APIRouter(prefix="/system", tags=["system"])
log = logging.getLogger("app.status")


@router.get("/status")
async def system_status(db: AsyncSession = Depends(get_db)):
    # 1) DB check (requête minimale)
    db_ok = True
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        log.warning("db_check_failed", extra={"error": str(exc)})
        db_ok = False

    # 2) Volumes + fraîcheur
    counts = None
    last_dvf = None
    if db_ok:
        counts = {
            "coproprietes": (await db.execute(select(func.count()).select_from(Copropriete))).scalar_one(),
            "scored": (
                await db.execute(
                    select(func.count()).select_from(Copropriete).where(Copropriete.score_global.is_not(None))
                )
            ).scalar_one(),
            "dvf_transactions": (await db.execute(select(func.count()).select_from(DvfTransaction))).scalar_one(),
            "dpe_logements": (await db.execute(select(func.count()).select_from(DpeLogement))).scalar_one(),
        }
        last = (await db.execute(select(func.max(DvfTransaction.date_mutation)))).scalar_one_or_none()
        last_dvf = last.isoformat() if last else None

    # Réponse (format constant) pour monitoring / UI
    return {
        "ok": db_ok,
        "db": {"ok": db_ok},
        "counts": counts,
        "last_dvf_date": last_dvf,
        "ts": datetime.now(timezone.utc).isoformat(),
    }
