from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.settings import settings
from app.db.session import get_db
from app.schemas.alertes import AlertCreate, AlertEventOut, AlertListOut
from app.schemas.common import MessageOut
from app.services import alertes_service

"""
API Alertes.

Rôle (fonctionnel) :
- Créer une alerte de variation de score (email + slug), en attente de confirmation.
- Lister / supprimer les alertes d’un email.
- Confirmer une alerte (lien envoyé par email) puis rediriger vers le front.
- Consulter l’historique (events) d’une alerte.

L’email sert de “propriétaire” : suppression et historique exigent l’email de l’abonné.
"""

router = APIRouter(prefix="/alertes", tags=["alertes"])


@router.post("", response_model=MessageOut)
async def create_alert(payload: AlertCreate, response: Response, db: AsyncSession = Depends(get_db)):
    result = await alertes_service.subscribe(db, payload.email, payload.slug)
    # 201 à la création, 200 si l’alerte était déjà active
    response.status_code = result.status_code
    return MessageOut(message=result.message)


@router.get("", response_model=AlertListOut)
async def list_alerts(email: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    return AlertListOut(alerts=await alertes_service.list_alerts(db, email))


@router.get("/confirm/{token}")
async def confirm_alert(token: str, db: AsyncSession = Depends(get_db)):
    outcome = await alertes_service.confirm(db, token)
    url = f"{settings.FRONTEND_URL.rstrip('/')}/alertes?confirmed={outcome}"
    return RedirectResponse(url, status_code=307)


@router.delete("/{alert_id}", response_model=MessageOut)
async def delete_alert(alert_id: int, email: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    return MessageOut(message=await alertes_service.delete_alert(db, alert_id, email))


@router.get("/{alert_id}/events", response_model=List[AlertEventOut])
async def list_alert_events(alert_id: int, email: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    return await alertes_service.list_events(db, alert_id, email)
