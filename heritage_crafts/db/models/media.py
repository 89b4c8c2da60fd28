from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer
from sqlmodel import Field

from .base import BaseModelDB


class MediaFile(BaseModelDB, table=True):
    """Fichiers stockés dans MinIO / S3, référencés dans la base."""

    object_key: str = Field(index=True, unique=True, description="Chemin de l'objet dans le bucket S3/MinIO")
    bucket: str = Field(default="media", description="Nom du bucket")
    mime_type: str = Field(description="Type MIME réel (détecté)")
    bytes: int = Field(description="Taille en octets")
    sha256: Optional[str] = Field(default=None, description="Hash pour la déduplication")
    original_name: Optional[str] = Field(default=None)
    owner_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("user.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        description="Propriétaire du fichier",
    )
