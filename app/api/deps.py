from __future__ import annotations

from fastapi import Depends, Request

from app.core.security import require_api_key

"""
Dépendances API.

Rôle (fonctionnel) :
- Centralise les dépendances réutilisables sur les routes.
- Ici : accès “pro” via clé API (header) pour les données DVF détaillées.
"""


async def require_pro_access(request: Request) -> None:
    await require_api_key(request)


# Dépendance prête à l’emploi pour protéger un endpoint
ProAuthDep = Depends(require_pro_access)

# En-tête de cache partagé par les endpoints carte (CDN)
MAP_CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"
