from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field

from .base import BaseModelDB
from .enums import VerificationStatus


class CraftsmanProfile(BaseModelDB, table=True):
    """Sous-profil d'un utilisateur artisan (un seul par utilisateur)."""

    user_id: int = Field(foreign_key="user.id", unique=True, index=True)
    craft_specialties: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    bio: Optional[Dict[str, str]] = Field(default=None, sa_column=Column(JSON))
    experience_years: Optional[int] = Field(default=None, ge=0)
    workshop_location: Optional[str] = Field(default=None)
    contact_info: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    image_url: Optional[str] = Field(default=None)
    verification_status: VerificationStatus = Field(default=VerificationStatus.PENDING, index=True)
