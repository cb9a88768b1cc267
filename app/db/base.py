from sqlalchemy.orm import DeclarativeBase

"""
DB Base.

Rôle (fonctionnel) :
- Classe Base SQLAlchemy commune à tous les modèles (coproprietes, dvf_transactions,
  dpe_logements, score_alerts…).
- Sa metadata sert de cible à Alembic (autogenerate) et à l’introspection ORM.
"""


class Base(DeclarativeBase):
    pass
