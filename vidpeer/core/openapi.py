"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

custom_openapi(app) complète le schéma généré par FastAPI avec les conventions du nœud.
"""

from fastapi.openapi.utils import get_openapi

def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=(
            "Nœud de publication vidéo fédéré.\n\n"
            "### Conventions\n"
            "- Toutes les heures sont en UTC.\n"
            "- Pagination: query params `page` & `size`.\n"
            "- Tri: `sort=name|duration|created_at`, préfixe `-` pour l'ordre décroissant.\n"
            "- Publication: l'en-tête `X-Federation` vaut `dispatched` ou `degraded`.\n"
        ),
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
