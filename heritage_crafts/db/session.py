"""
➡️ But : Configurer la base (SQLite par défaut) et gérer les sessions de base de données.

engine : connexion construite depuis settings.DATABASE_URL.

init_db() : crée les tables à partir des modèles SQLModel.

get_session() : dépendance FastAPI qui ouvre une session, la fournit aux routes, puis la ferme proprement.

🔹 Avantages :

Un seul endroit pour gérer les connexions DB.

Réutilisable par injection (Depends(get_session)).
"""

import json
from typing import Any, Dict

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

# Import all models for creating all tables
from heritage_crafts.db.models import (  # noqa: F401
    behavior,
    bookings,
    carts,
    comments,
    coupons,
    courses,
    craftsmen,
    events,
    follows,
    inventory,
    media,
    materials,
    notifications,
    orders,
    payments,
    products,
    refresh_tokens,
    reviews,
    translations,
    users,
)

from heritage_crafts.core.config import settings


def json_serializer(value: Any) -> str:
    """Garde les caractères chinois lisibles en base (recherche LIKE sur les champs multilingues)."""
    return json.dumps(value, ensure_ascii=False, default=str)


def _build_engine() -> Engine:
    url = settings.DATABASE_URL
    assert url, "DATABASE_URL must be set"

    is_sqlite = url.startswith("sqlite:")

    connect_args: Dict[str, Any] = {}
    if is_sqlite:
        # Requis pour SQLite quand utilisé dans un app serveur (multi-threads)
        connect_args["check_same_thread"] = False

    return create_engine(
        url,
        json_serializer=json_serializer,
        echo=settings.DB_ECHO,
        connect_args=connect_args,
        pool_pre_ping=not is_sqlite,  # ping utile pour Postgres/MySQL ; inutile pour SQLite
    )

engine: Engine = _build_engine()

def init_db(bind: Engine = None) -> None:
    """
    Crée les tables si elles n'existent pas (usage dev/demo).
    En prod, préfère des migrations.
    """
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """
    Dépendance FastAPI : fournit une session par requête.
    Utilisation :
        def route(..., session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
