from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests
from starlette.concurrency import run_in_threadpool

from app.core.settings import settings

"""
Geocoding (Base Adresse Nationale).

Rôle (fonctionnel) :
- Transforme une saisie libre (“12 rue de la Paix Paris”) en coordonnées via l’API BAN.
- Un échec (réseau, timeout, réponse vide ou inattendue) n’est jamais bloquant :
  la recherche retombe sur la recherche textuelle seule.
"""

log = logging.getLogger("app.geocoding")

USER_AGENT = "CoproScore/1.0"


@dataclass(frozen=True)
class GeocodedPoint:
    lat: float
    lon: float
    label: Optional[str] = None


def geocode(query: str, session: Optional[requests.Session] = None) -> Optional[GeocodedPoint]:
    """Premier résultat BAN (limit=1) ou None."""
    http = session or requests
    try:
        response = http.get(
            settings.BAN_API_URL,
            params={"q": query, "limit": 1},
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=settings.GEOCODING_TIMEOUT_S,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as exc:
        log.warning("geocoding_failed", extra={"query": query, "error": str(exc)})
        return None

    features = data.get("features") or []
    if not features:
        return None

    feature = features[0]
    coords = (feature.get("geometry") or {}).get("coordinates") or []
    if len(coords) < 2:
        return None

    lon, lat = coords[0], coords[1]
    label = (feature.get("properties") or {}).get("label")
    return GeocodedPoint(lat=float(lat), lon=float(lon), label=label)


async def geocode_async(query: str) -> Optional[GeocodedPoint]:
    # requests est bloquant : exécution dans le pool de threads Starlette
    return await run_in_threadpool(geocode, query)
