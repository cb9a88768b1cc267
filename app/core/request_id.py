from __future__ import annotations

import uuid
from contextvars import ContextVar

"""
Core Request ID.

Rôle (fonctionnel) :
- Conserve l’identifiant de requête courant dans un ContextVar (isolé par requête async).
- Le request_id vient du header X-Request-Id ou est généré.
- Utilisé par les logs, les erreurs et l’historique des alertes (score_alert_events).
"""

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(rid: str | None) -> None:
    _request_id.set(rid)


def get_request_id() -> str | None:
    return _request_id.get()


def ensure_request_id(incoming: str | None = None) -> str:
    """Réutilise le request_id entrant (nettoyé, tronqué à 64 caractères) ou en génère un."""
    rid = (incoming or "").strip()[:64] or str(uuid.uuid4())
    set_request_id(rid)
    return rid
