from fastapi import APIRouter

from .health import router as health_router
from .status import router as status_router

from app.api.alertes import router as alertes_router
from app.api.carte import router as carte_router
from app.api.comparateur import router as comparateur_router
from app.api.coproprietes import router as coproprietes_router
from app.api.search import router as search_router
from app.api.stats import router as stats_router
from app.api.villes import router as villes_router

"""
Router principal de l’API.

Rôle (fonctionnel) :
- Regroupe les routeurs par domaine (recherche, carte, fiches, comparateur, alertes, villes, stats).
- Les routes métier sont servies sous /api ; health et status restent à la racine (monitoring).
"""

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(status_router)

domain_router = APIRouter(prefix="/api")
domain_router.include_router(search_router)
domain_router.include_router(carte_router)
domain_router.include_router(coproprietes_router)
domain_router.include_router(comparateur_router)
domain_router.include_router(alertes_router)
domain_router.include_router(villes_router)
domain_router.include_router(stats_router)

api_router.include_router(domain_router)
