"""
➡️ But : Définir la structure des tables de la base (ORM).

Contient les classes héritant de SQLModel. Ici on représente les propriétés
communes de toutes les tables (id, dates de création / mise à jour).

🔹 Avantages :

Tu manipules des objets Python, pas du SQL brut.

Facile à migrer vers PostgreSQL ou MySQL plus tard.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    """UTC naïf : SQLite ne conserve pas le fuseau, on compare toujours en naïf."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseModelDB(SQLModel, table=False):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
