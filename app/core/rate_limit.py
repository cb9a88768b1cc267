from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Optional, Tuple

from fastapi import Request

from app.core.errors import AppHTTPException
from app.core.settings import settings

"""
Core Rate Limit.

Rôle (fonctionnel) :
- Protège les endpoints exposés au public (recherche, alertes, comparateur) contre les rafales.
- Compteur in-memory par IP + route (method + path), fenêtre fixe de 60 secondes.

Activation via settings :
- RATE_LIMIT_ENABLED : active/désactive le rate limiting.
- RATE_LIMIT_RPM : limite de requêtes par minute (par IP + route).
"""

# Préfixes soumis au rate limit (appels externes BAN, écritures d’alertes)
RATE_LIMITED_PREFIXES = ("/api/search", "/api/alertes", "/api/comparateur")

WINDOW_S = 60.0


@dataclass
class _Bucket:
    window_start: float
    count: int


class InMemoryRateLimiter:
    """
    Rate limiter en mémoire.

    - Un compteur par clé (IP, "METHOD /path") sur une fenêtre de 60s.
    - Lève AppHTTPException(429) au-delà de la limite.
    """

    def __init__(self, limit_rpm: Optional[int] = None, enabled: Optional[bool] = None) -> None:
        self._lock = Lock()
        self._buckets: Dict[Tuple[str, str], _Bucket] = {}
        # None = lecture dynamique des settings (permet de basculer via .env)
        self._limit_rpm = limit_rpm
        self._enabled = enabled

    def _client_ip(self, request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _is_enabled(self) -> bool:
        if self._enabled is not None:
            return self._enabled
        return bool(getattr(settings, "RATE_LIMIT_ENABLED", False))

    def _limit(self) -> int:
        if self._limit_rpm is not None:
            return self._limit_rpm
        return int(getattr(settings, "RATE_LIMIT_RPM", 120) or 120)

    def applies_to(self, path: str) -> bool:
        return path.startswith(RATE_LIMITED_PREFIXES)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def check(self, request: Request, now: Optional[float] = None) -> None:
        """Vérifie la limite pour (IP + route). Lève 429 si dépassement."""
        if not self._is_enabled():
            return

        limit = self._limit()
        if limit <= 0:
            return

        key = (self._client_ip(request), f"{request.method} {request.url.path}")
        now = time.time() if now is None else now

        with self._lock:
            bucket = self._buckets.get(key)

            if bucket is None or (now - bucket.window_start) >= WINDOW_S:
                self._buckets[key] = _Bucket(window_start=now, count=1)
                return

            bucket.count += 1

            if bucket.count > limit:
                retry_after = max(1, int(WINDOW_S - (now - bucket.window_start)))
                raise AppHTTPException(
                    429,
                    "RATE_LIMITED",
                    f"Trop de requêtes (limite: {limit}/min).",
                    details={"limit_rpm": limit, "retry_after_s": retry_after},
                    headers={"Retry-After": str(retry_after)},
                )


rate_limiter = InMemoryRateLimiter()
