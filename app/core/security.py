from __future__ import annotations

import secrets
from typing import Mapping, Optional

from fastapi import Request

from app.core.errors import AppHTTPException
from app.core.settings import settings

"""
Core Security (accès pro).

Rôle (fonctionnel) :
- Les transactions DVF détaillées et les séries trimestrielles sont réservées aux abonnés pro.
- La clé est lue dans `Authorization: Bearer <clé>` ou, à défaut, dans `X-API-Key`.

Règles :
- API_KEY configurée : clé obligatoire (401 UNAUTHORIZED sinon).
- API_KEY vide hors prod : accès libre (dev / local).
- API_KEY vide en prod : 500 SERVER_MISCONFIG, on ne sert jamais les données pro sans clé.
"""


def extract_api_key(headers: Mapping[str, str]) -> Optional[str]:
    auth = headers.get("authorization")
    if auth:
        scheme, _, token = auth.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()

    token = (headers.get("x-api-key") or "").strip()
    return token or None


def verify_api_key(token: Optional[str], expected: str, env: str) -> None:
    if not expected:
        if env.lower() == "prod":
            raise AppHTTPException(500, "SERVER_MISCONFIG", "API_KEY manquante côté serveur")
        return

    if token is None or not secrets.compare_digest(token, expected):
        raise AppHTTPException(401, "UNAUTHORIZED", "Accès pro requis : clé API invalide ou manquante")


async def require_api_key(request: Request) -> None:
    """Dépendance FastAPI des routes pro."""
    verify_api_key(extract_api_key(request.headers), settings.API_KEY or "", str(settings.ENV))
