"""
app.db

Package base de données.

- base : Base déclarative commune aux modèles.
- session : session async pour FastAPI (Depends(get_db)) et sessions sync pour les scripts.
- Les migrations Alembic utilisent DATABASE_URL_SYNC.
"""
