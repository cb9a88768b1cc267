from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.settings import settings

"""
DB Session.

Rôle (fonctionnel) :
- Initialise l’engine SQLAlchemy async utilisé par l’API (asyncpg).
- Expose `get_db()` comme dépendance FastAPI (Depends(get_db)).
- Fournit une factory de sessions sync (psycopg) pour les scripts d’import et de calcul.

Notes :
- expire_on_commit=False : les objets restent lisibles après commit.
- echo=False : pas de log SQL brut (on garde les logs applicatifs JSON).
"""

engine = create_async_engine(settings.DATABASE_URL, echo=False, pool_pre_ping=True)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db():
    """Dépendance FastAPI : yield une session DB et garantit sa fermeture."""
    async with AsyncSessionLocal() as session:
        yield session


def make_sync_session_factory(url: str | None = None) -> sessionmaker[Session]:
    """Factory sync pour les scripts batch (engine créé à la demande)."""
    sync_engine = create_engine(url or settings.DATABASE_URL_SYNC, future=True)
    return sessionmaker(bind=sync_engine, autoflush=False, autocommit=False, future=True)
