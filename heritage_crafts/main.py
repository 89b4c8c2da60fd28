"""
➡️ But : assembler toutes les pièces du puzzle.

Crée l’instance FastAPI (app).

Configure :

Logging (core/logging_config)

CORS (autorisations de qui peut appeler ces API)

Gestionnaires d'erreurs métier (core/errors)

titre, version, tags

schéma OpenAPI personnalisé

Inclut les routers (ex : /api/v1/courses).

Initialise la base au démarrage (@app.on_event("startup")).

🔹 Avantages :

Centralise la configuration du serveur HTTP.

Point unique d’exécution : uvicorn heritage_crafts.main:app --reload.
"""

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import setup_exception_handlers
from heritage_crafts.core.logging_config import get_logger, setup_logging
from heritage_crafts.core.openapi import custom_openapi
from heritage_crafts.db.session import get_session, init_db

from heritage_crafts.api.v1.routers import (
    admin,
    authentication,
    bookings,
    cart,
    comments,
    coupons,
    courses,
    craftsmen,
    events,
    inventory,
    media,
    materials,
    notifications,
    orders,
    payments,
    products,
    recommendations,
    reviews,
    search,
    social,
    translations,
    users,
)

import uvicorn

setup_logging()
logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    openapi_tags=[
        {"name": "auth", "description": "Opérations liées à l'authentification"},
        {"name": "users", "description": "Profils et gestion des utilisateurs"},
        {"name": "craftsmen", "description": "Profils artisans et vérification"},
        {"name": "courses", "description": "Cours proposés par les artisans"},
        {"name": "bookings", "description": "Réservations de cours"},
        {"name": "learning", "description": "Supports de cours et progression des apprenants"},
        {"name": "events", "description": "Ateliers, expositions et inscriptions"},
        {"name": "products", "description": "Boutique des artisans"},
        {"name": "cart", "description": "Panier d'achat"},
        {"name": "orders", "description": "Commandes"},
        {"name": "payments", "description": "Paiements Stripe / PayPal et webhooks"},
        {"name": "coupons", "description": "Codes promo"},
        {"name": "reviews", "description": "Avis produits"},
        {"name": "inventory", "description": "Alertes de stock"},
        {"name": "comments", "description": "Commentaires"},
        {"name": "moderation", "description": "Signalements et modération"},
        {"name": "social", "description": "Abonnements et fil d'activité"},
        {"name": "notifications", "description": "Notifications in-app"},
        {"name": "recommendations", "description": "Recommandations et suivi du comportement"},
        {"name": "search", "description": "Recherche globale"},
        {"name": "translations", "description": "Traduction automatique et cache"},
        {"name": "media", "description": "Opérations liées au stockage des images et vidéos"},
        {"name": "admin", "description": "Tableau de bord administrateur"},
    ],
)

# CORS (ajustez selon vos besoins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)

setup_exception_handlers(app)

# Routers
for module in (
    authentication,
    users,
    craftsmen,
    courses,
    bookings,
    materials,
    events,
    products,
    cart,
    orders,
    payments,
    coupons,
    reviews,
    inventory,
    comments,
    social,
    notifications,
    recommendations,
    search,
    translations,
    media,
    admin,
):
    app.include_router(module.router, prefix="/api/v1")
app.include_router(comments.reports_router, prefix="/api/v1")

# Génération du schéma OpenAPI custom (facultatif, mais propre)
app.openapi = lambda: custom_openapi(app)


@app.get("/health", tags=["health"], summary="État du service")
def health(session: Session = Depends(get_session)):
    database = "ok"
    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check: database unreachable: %s", e)
        database = "error"
    return {"status": "ok", "database": database, "version": settings.APP_VERSION}


# Démarrage
@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("%s %s started (env=%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENV)


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8080, reload=(settings.ENV == "dev")) # http://localhost:8080
