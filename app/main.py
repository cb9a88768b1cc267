from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from app.api.router import api_router
from app.core.errors import AppHTTPException, error_payload
from app.core.logging import setup_logging
from app.core.rate_limit import rate_limiter
from app.core.request_id import ensure_request_id, get_request_id, set_request_id
from app.core.settings import settings

"""
Application FastAPI CoproScore (entrypoint).

Rôle (fonctionnel) :
- Assemble l’API publique : recherche, carte, fiches copropriété, comparateur, alertes, villes, stats.
- Corrélation des requêtes : X-Request-Id lu ou généré, renvoyé sur toutes les réponses
  (y compris les 429 du rate limit) et injecté dans les logs JSON.
- Une ligne de log “request” par appel (méthode, chemin, statut, durée) ; WARNING au-delà de SLOW_REQUEST_MS.
- Rate limit optionnel sur la recherche (appels BAN), les alertes et le comparateur.
- Toute erreur sort dans l’enveloppe {"error": {...}} : jamais de stacktrace côté client.

Pas de logique métier ici : routes dans app.api, calculs dans app.services.
"""

log = logging.getLogger("app")
http_log = logging.getLogger("app.http")

# Front Next.js en local
DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


class UTF8JSONResponse(JSONResponse):
    """JSON avec charset explicite : les libellés (communes, syndics) sont accentués."""
    media_type = "application/json; charset=utf-8"


def _origins(value: str) -> list[str]:
    return [o.strip() for o in (value or "").split(",") if o.strip()]


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_request_id() or str(uuid.uuid4())


def _error_response(
    request: Request,
    status: int,
    code: str,
    message: str,
    details: Optional[Any] = None,
) -> UTF8JSONResponse:
    rid = _rid(request)
    response = UTF8JSONResponse(
        status_code=status,
        content=error_payload(code=code, message=message, status=status, request_id=rid, details=details),
    )
    response.headers["X-Request-Id"] = rid
    return response


def _from_exception(request: Request, exc: StarletteHTTPException, default_code: str) -> UTF8JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        response = _error_response(
            request,
            exc.status_code,
            str(detail.get("code", default_code)),
            str(detail.get("message", "Erreur HTTP")),
            detail.get("details"),
        )
    else:
        response = _error_response(request, exc.status_code, default_code, str(detail))

    # Retry-After (429), Allow (405)…
    for name, value in (exc.headers or {}).items():
        response.headers[name] = value
    return response


def register_middlewares(app: FastAPI) -> None:
    slow_ms = int(settings.SLOW_REQUEST_MS)

    # Déclaré en premier = exécuté au plus près des routes
    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        # Préflight CORS jamais compté
        if request.method != "OPTIONS" and rate_limiter.applies_to(request.url.path):
            try:
                rate_limiter.check(request)
            except AppHTTPException as exc:
                return _from_exception(request, exc, "RATE_LIMITED")
        return await call_next(request)

    @app.middleware("http")
    async def observability(request: Request, call_next):
        rid = ensure_request_id(request.headers.get("X-Request-Id"))
        request.state.request_id = rid

        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            response.headers["X-Request-Id"] = rid
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            http_log.log(
                logging.WARNING if duration_ms >= slow_ms else logging.INFO,
                "request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": getattr(response, "status_code", 500),
                    "duration_ms": duration_ms,
                    "client_ip": request.client.host if request.client else None,
                },
            )
            set_request_id(None)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppHTTPException)
    async def app_error(request: Request, exc: AppHTTPException):
        return _from_exception(request, exc, "HTTP_ERROR")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # 404 de routage, 405…
        default_code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return _from_exception(request, exc, default_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return _error_response(request, 422, "VALIDATION_ERROR", "Requête invalide", exc.errors())

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        log.exception("unhandled_error", extra={"path": request.url.path, "error": str(exc)})
        return _error_response(request, 500, "INTERNAL_ERROR", "Erreur interne du serveur")


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        default_response_class=UTF8JSONResponse,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_origins(settings.CORS_ORIGINS) or DEV_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key", "X-Request-Id"],
        expose_headers=["X-Request-Id"],
    )

    register_middlewares(app)
    register_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
