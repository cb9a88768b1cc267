"""
scripts

Package des scripts batch (CLI) de CoproScore.

Rôle (fonctionnel) :
- Ingestion des données ouvertes :
  - import_rnic : registre des copropriétés (CSV RNIC)
  - import_dvf : ventes d’appartements (DVF géolocalisées)
  - download_dpe / import_dpe : diagnostics de performance énergétique (API ADEME)
- Calculs dérivés, à lancer dans cet ordre après import :
  - generate_slugs, calculate_market, calculate_dpe, calculate_scores

Pourquoi un __init__.py :
- Permet d’importer les fonctions de conversion des scripts dans les tests (`from scripts...`).

Note :
- Les scripts orchestrent : les règles métier vivent dans `app/services`.
"""
