"""
app

Package racine du backend CoproScore.

Rôle (fonctionnel) :
- Contient tout le code applicatif (API, logique métier, accès DB, schémas).
- Sert de point d’ancrage pour les imports : `from app...`

Organisation (haute-level) :
- app.api      : routes FastAPI (recherche, carte, fiches, comparateur, alertes, villes, stats)
- app.core     : briques transverses (settings, errors, logs, request id, sécurité, rate-limit)
- app.db       : base SQLAlchemy + sessions async (API) / sync (scripts)
- app.models   : modèles ORM (tables Postgres)
- app.schemas  : schémas Pydantic (entrées/sorties API, JSON en camelCase)
- app.services : logique métier (score, marché DVF, DPE, travaux, timeline, requêtes)
"""
