from fastapi import APIRouter

from app.core.settings import settings

"""
API Health.

Rôle (fonctionnel) :
- Sonde de vie pour l’orchestrateur : répond sans toucher la base
  (l’état de la base et des imports est sur /system/status).
"""

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok", "app": settings.APP_NAME, "env": settings.ENV}
