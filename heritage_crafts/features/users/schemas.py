"""
➡️ But : Définir les formats d’entrée/sortie de l’API pour les utilisateurs.

UserOut → réponse de l’API (jamais le hash du mot de passe)

UserProfileUpdateIn / LanguageUpdateIn → corps PATCH

AdminUserUpdateIn → modifications réservées aux admins
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from heritage_crafts.db.models.enums import UserRole


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: Optional[str] = None
    role: UserRole
    preferred_language: str
    is_active: bool = True
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None


class PublicUserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: Optional[str] = None
    role: UserRole
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    location: Optional[str] = None


class UserListOut(BaseModel):
    items: List[UserOut]
    total: int


class UserProfileUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=2000)
    avatar_url: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=200)
    website: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=30)


class LanguageUpdateIn(BaseModel):
    language: str


class AdminUserUpdateIn(BaseModel):
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
