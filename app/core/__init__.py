"""
app.core

Package “cœur” : les briques transverses partagées par les endpoints, les services et les
scripts batch, indépendantes du domaine copropriété.

- settings
  Configuration (variables d’environnement, URLs DB, services externes, chemins des fichiers).

- errors
  Enveloppe d’erreur API uniforme (code, message, status, request_id, timestamp) et
  AppHTTPException.

- logging
  Logs JSON (1 ligne par event) enrichis du request_id et des extras métier.

- request_id
  Identifiant de corrélation propagé de la requête HTTP jusqu’aux logs et à l’audit des alertes.

- rate_limit
  Limitation de débit in-memory sur la recherche, les alertes et le comparateur.

- security
  Clé API des endpoints “pro”.
"""
