"""
Validation des fichiers envoyés par les artisans (photos d'atelier, de produits,
vidéos de démonstration) et construction des clés d'objets S3/MinIO.

Le type est toujours déduit des octets (filetype), jamais du Content-Type
annoncé par le navigateur.
"""

import datetime
import hashlib
import os
from typing import NamedTuple, Optional, Set
from uuid import uuid4

import filetype

ALLOWED_IMAGE_MIME: Set[str] = {"image/jpeg", "image/png", "image/webp", "image/avif", "image/gif"}
ALLOWED_VIDEO_MIME: Set[str] = {"video/mp4", "video/webm", "video/quicktime", "video/x-matroska"}
ALLOWED_MEDIA_MIME: Set[str] = ALLOWED_IMAGE_MIME | ALLOWED_VIDEO_MIME

MAX_ORIGINAL_NAME = 255


class ValidatedMedia(NamedTuple):
    mime: str
    ext: str
    size: int
    sha256: str


def validate_bytes(file_bytes: bytes, *, max_mb: int, allowed_mime: Set[str] = ALLOWED_MEDIA_MIME) -> ValidatedMedia:
    """Lève ValueError (message renvoyé tel quel au client) si le fichier est refusé."""
    size = len(file_bytes)
    if not size:
        raise ValueError("Empty file")
    if size > max_mb * 1024 * 1024:
        raise ValueError(f"File too large (max {max_mb} MB)")

    kind = filetype.guess(file_bytes)
    if kind is None or kind.mime not in allowed_mime:
        raise ValueError(f"File type not allowed: {kind.mime if kind else 'unknown'}")

    return ValidatedMedia(kind.mime, f".{kind.extension}", size, hashlib.sha256(file_bytes).hexdigest())


def prefix_for_mime(mime: str) -> str:
    return "videos" if mime in ALLOWED_VIDEO_MIME or mime.startswith("video/") else "images"


def clean_original_name(name: Optional[str]) -> Optional[str]:
    # Les navigateurs anciens envoient parfois le chemin complet (C:\...\photo.jpg)
    if not name:
        return None
    base = os.path.basename(name.replace("\\", "/")).strip()
    return base[:MAX_ORIGINAL_NAME] or None


def build_object_key(*, prefix: str, owner_id: Optional[int], ext_with_dot: str) -> str:
    """images/users/12/2026-10-18/<uuid>.png"""
    owner = owner_id if owner_id is not None else "anonymous"
    ext = ext_with_dot if ext_with_dot.startswith(".") else f".{ext_with_dot}"
    return f"{prefix}/users/{owner}/{datetime.date.today().isoformat()}/{uuid4().hex}{ext}"
