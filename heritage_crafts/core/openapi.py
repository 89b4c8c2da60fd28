"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

custom_openapi(app) complète le schéma généré par FastAPI :

conventions de l'API (langues, pagination, montants, heures),

schéma commun des erreurs métier (`ErrorResponse`),

liste des langues supportées (`x-supported-languages`).
"""

from fastapi.openapi.utils import get_openapi

from heritage_crafts.core.config import settings

ERROR_RESPONSE_SCHEMA = {
    "title": "ErrorResponse",
    "type": "object",
    "required": ["detail"],
    "properties": {
        "detail": {"type": "string"},
        "errors": {"type": "array", "items": {"type": "string"}},
    },
}


def _description() -> str:
    languages = ", ".join(f"`{code}`" for code in settings.SUPPORTED_LANGUAGES)
    return (
        "API de la plateforme des métiers d'art traditionnels de Hong Kong : "
        "artisans, cours, réservations, boutique, social, traductions.\n\n"
        "### Conventions\n"
        "- Toutes les heures sont en UTC.\n"
        "- Pagination: query params `page` & `size`.\n"
        f"- Montants: chaînes décimales à 2 chiffres, devise `{settings.PAYMENT_CURRENCY}`.\n"
        f"- Champs multilingues: objets indexés par langue ({languages}), "
        f"`{settings.DEFAULT_LANGUAGE}` par défaut.\n"
        "- Erreurs métier: `{\"detail\": ..., \"errors\": [...]}`.\n"
    )


def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=_description(),
        routes=app.routes,
        tags=app.openapi_tags,
    )
    openapi_schema.setdefault("components", {}).setdefault("schemas", {})["ErrorResponse"] = ERROR_RESPONSE_SCHEMA
    openapi_schema["info"]["x-supported-languages"] = list(settings.SUPPORTED_LANGUAGES)
    app.openapi_schema = openapi_schema
    return app.openapi_schema
