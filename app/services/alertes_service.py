from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AppHTTPException
from app.core.request_id import get_request_id
from app.models.alert_confirmation import AlertConfirmation
from app.models.copropriete import Copropriete
from app.models.score_alert import ScoreAlert
from app.models.score_alert_event import EVENT_CONFIRMED, EVENT_CREATED, ScoreAlertEvent
from app.schemas.alertes import AlertEventOut, AlertOut, is_valid_email
from app.services.formatting import format_copro_name

"""
Alertes Service.

Rôle (fonctionnel) :
- Abonnement d’un email aux variations de score d’une copropriété (double opt-in) :
  - limite de 3 alertes gratuites par email,
  - création idempotente (1 alerte par email + copropriété),
  - jeton de confirmation, activation au premier clic.
- Liste / suppression des alertes d’un email, historique (events) d’une alerte.

Traçabilité :
- chaque création / confirmation écrit un ScoreAlertEvent (avec request_id),
- et un log structuré “app.alertes”.

L’envoi de l’email de confirmation est hors périmètre : le jeton est persisté, un expéditeur
externe peut le consommer.
"""

log = logging.getLogger("app.alertes")

MAX_FREE_ALERTS = 3

MSG_ALREADY = "Vous êtes déjà abonné à cette alerte."
MSG_CREATED = "Un email de confirmation vous a été envoyé."
MSG_LIMIT = "Vous avez atteint la limite de 3 alertes gratuites. Passez Pro pour en créer davantage."
MSG_DELETED = "Alerte supprimée"

CONFIRM_OK = "ok"
CONFIRM_ALREADY = "already"
CONFIRM_INVALID = "invalid"


@dataclass(frozen=True)
class SubscribeResult:
    alert_id: int
    created: bool
    message: str

    @property
    def status_code(self) -> int:
        return 201 if self.created else 200


def _now() -> datetime:
    return datetime.now(timezone.utc)


def require_email(email: Optional[str], message: str = "Email invalide") -> str:
    if not is_valid_email(email):
        raise AppHTTPException(400, "INVALID_EMAIL", message)
    return email.strip().lower()


async def subscribe(db: AsyncSession, email: Optional[str], slug: Optional[str]) -> SubscribeResult:
    email = require_email(email)
    if not slug:
        raise AppHTTPException(400, "MISSING_SLUG", "Slug manquant")

    copro = (
        await db.execute(select(Copropriete.id).where(Copropriete.slug == slug))
    ).scalar_one_or_none()
    if copro is None:
        raise AppHTTPException(404, "COPRO_NOT_FOUND", "Copropriété introuvable", details={"slug": slug})

    count = (
        await db.execute(select(func.count()).select_from(ScoreAlert).where(ScoreAlert.email == email))
    ).scalar_one()
    if count >= MAX_FREE_ALERTS:
        raise AppHTTPException(403, "ALERT_LIMIT_REACHED", MSG_LIMIT, details={"limit": MAX_FREE_ALERTS})

    # Upsert : la contrainte (email, copro_id) rend la création idempotente
    await db.execute(
        insert(ScoreAlert)
        .values(email=email, copro_id=copro, active=False, created_at=_now())
        .on_conflict_do_nothing(constraint="uq_score_alerts_email_copro")
    )
    alert = (
        await db.execute(select(ScoreAlert).where(ScoreAlert.email == email, ScoreAlert.copro_id == copro))
    ).scalars().one()

    if alert.active:
        await db.commit()
        return SubscribeResult(alert_id=alert.id, created=False, message=MSG_ALREADY)

    token = str(uuid.uuid4())
    db.add(AlertConfirmation(alert_id=alert.id, token=token, created_at=_now()))
    db.add(
        ScoreAlertEvent(
            alert_id=alert.id,
            event_type=EVENT_CREATED,
            message=f"Confirmation demandée pour {email}",
            request_id=get_request_id(),
            created_at=_now(),
        )
    )
    await db.commit()

    log.info("alert_subscribe", extra={"alert_id": alert.id, "copro_id": copro, "slug": slug})
    return SubscribeResult(alert_id=alert.id, created=True, message=MSG_CREATED)


async def list_alerts(db: AsyncSession, email: Optional[str]) -> List[AlertOut]:
    email = require_email(email)
    rows = (
        await db.execute(
            select(
                ScoreAlert.id,
                ScoreAlert.copro_id,
                ScoreAlert.active,
                ScoreAlert.created_at,
                Copropriete.slug,
                Copropriete.adresse_reference,
                Copropriete.nom_usage,
                Copropriete.commune_adresse,
                Copropriete.code_postal,
                Copropriete.score_global,
            )
            .join(Copropriete, Copropriete.id == ScoreAlert.copro_id)
            .where(ScoreAlert.email == email)
            .order_by(ScoreAlert.created_at.desc())
        )
    ).all()

    return [
        AlertOut(
            id=r.id,
            copro_id=r.copro_id,
            active=r.active,
            created_at=r.created_at,
            slug=r.slug,
            nom=format_copro_name(r.adresse_reference or r.nom_usage or "") or "",
            adresse=", ".join(p for p in (r.adresse_reference, r.code_postal, r.commune_adresse) if p),
            score=r.score_global,
        )
        for r in rows
    ]


async def _owned_alert(db: AsyncSession, alert_id: int, email: Optional[str]) -> ScoreAlert:
    email = require_email(email, "Email requis")
    alert = (
        await db.execute(select(ScoreAlert).where(ScoreAlert.id == alert_id, ScoreAlert.email == email))
    ).scalars().first()
    if alert is None:
        raise AppHTTPException(404, "ALERT_NOT_FOUND", "Alerte introuvable", details={"id": alert_id})
    return alert


async def delete_alert(db: AsyncSession, alert_id: int, email: Optional[str]) -> str:
    alert = await _owned_alert(db, alert_id, email)
    await db.execute(delete(ScoreAlert).where(ScoreAlert.id == alert.id))
    await db.commit()
    log.info("alert_delete", extra={"alert_id": alert_id})
    return MSG_DELETED


async def confirm(db: AsyncSession, token: str) -> str:
    """Valide un jeton ; retourne ok / already / invalid (paramètre de redirection)."""
    confirmation = (
        await db.execute(select(AlertConfirmation).where(AlertConfirmation.token == token))
    ).scalars().first()
    if confirmation is None:
        return CONFIRM_INVALID
    if confirmation.confirmed_at is not None:
        return CONFIRM_ALREADY

    confirmation.confirmed_at = _now()
    confirmation.alert.active = True
    db.add(
        ScoreAlertEvent(
            alert_id=confirmation.alert_id,
            event_type=EVENT_CONFIRMED,
            request_id=get_request_id(),
            created_at=_now(),
        )
    )
    await db.commit()

    log.info("alert_confirmed", extra={"alert_id": confirmation.alert_id, "event_type": EVENT_CONFIRMED})
    return CONFIRM_OK


async def list_events(db: AsyncSession, alert_id: int, email: Optional[str]) -> List[AlertEventOut]:
    alert = await _owned_alert(db, alert_id, email)
    events = (
        await db.execute(
            select(ScoreAlertEvent)
            .where(ScoreAlertEvent.alert_id == alert.id)
            .order_by(ScoreAlertEvent.created_at.asc())
        )
    ).scalars().all()
    return [
        AlertEventOut(
            id=str(e.id),
            alert_id=e.alert_id,
            event_type=e.event_type,
            old_score=e.old_score,
            new_score=e.new_score,
            message=e.message,
            request_id=e.request_id,
            created_at=e.created_at,
        )
        for e in events
    ]
