"""
app.schemas

Contrat HTTP de CoproScore (Pydantic v2).

- common : CamelModel (sortie JSON en camelCase), MessageOut.
- search, carte : recherche d’adresse, points et heatmap de la carte.
- coproprietes : fiche détaillée, quartier, timeline, DVF pro, comparateur.
- alertes : abonnement, liste, historique des alertes de score.
- villes, stats : pages ville / département et vue d’ensemble des scores.

Les modèles ORM (app.models) ne sortent jamais tels quels : chaque route déclare son response_model.
"""
