from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException

"""
Core Errors.

Rôle (fonctionnel) :
- Enveloppe d’erreur unique de l’API CoproScore :

  {"error": {"code": "COPRO_NOT_FOUND", "message": "Copropriété introuvable", "status": 404,
             "request_id": "...", "timestamp": "...", "details": {"slug": "..."}}}

- AppHTTPException porte un code stable (INVALID_BOUNDS, MISSING_SLUGS, ALERT_LIMIT_REACHED…)
  que le front peut tester sans parser le message.
- Les en-têtes éventuels (Retry-After sur un 429) sont recopiés sur la réponse par les handlers.
"""


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_payload(
    *,
    code: str,
    message: str,
    status: int,
    request_id: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {
        "code": code,
        "message": message,
        "status": status,
        "request_id": request_id,
        "timestamp": now_iso(),
    }
    # details absent plutôt que null
    if details is not None:
        error["details"] = details
    return {"error": error}


class AppHTTPException(HTTPException):
    """
    Erreur métier avec code stable.

        raise AppHTTPException(400, "INVALID_BOUNDS", "Paramètre bounds invalide", details={"bounds": b})
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(
            status_code=status_code,
            detail={"code": code, "message": message, "details": details},
            headers=dict(headers) if headers else None,
        )

    @property
    def code(self) -> str:
        return str(self.detail.get("code"))


def copro_not_found(slug: str) -> AppHTTPException:
    return AppHTTPException(404, "COPRO_NOT_FOUND", "Copropriété introuvable", details={"slug": slug})
