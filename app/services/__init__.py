"""
app.services

Package “services” : logique applicative indépendante des endpoints HTTP.

Rôle (fonctionnel) :
- Calculs purs réutilisés par l’API et les scripts batch :
  barème CoproScore, statistiques de marché, classe DPE médiane, budget travaux,
  explications des scores, timeline, slugs, formatage.
- Requêtes métier (sessions async) : recherche, carte, fiche, quartier, DVF, villes, alertes, stats.

Principe :
- app.api = transport HTTP (routes, validation, dépendances)
- app.services = orchestration métier (réutilisable, testable)
- scripts/ = batchs d’import et de calcul, qui appellent ces mêmes services en session sync
"""
