"""
➡️ But : Tables liées aux utilisateurs (compte, rôle, langue préférée, profil public).
"""

from typing import Optional

from sqlmodel import Field

from .base import BaseModelDB
from .enums import UserRole


class User(BaseModelDB, table=True):
    email: str = Field(index=True, unique=True)
    hashed_password: str
    name: Optional[str] = Field(default=None, max_length=100)
    role: UserRole = Field(default=UserRole.LEARNER, index=True)
    preferred_language: str = Field(default="zh-HK", max_length=8)
    is_active: bool = Field(default=True)

    # Profil public
    bio: Optional[str] = Field(default=None)
    avatar_url: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)
    website: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
