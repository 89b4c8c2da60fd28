"""
Service médias : orchestre repository + S3/MinIO.

Aucune logique SQL directe ici ; les erreurs sont des exceptions métier
(400 fichier invalide, 403 non propriétaire, 404 introuvable, 502 stockage).
"""

from typing import Callable, Optional

from fastapi import UploadFile

from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import ForbiddenError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.media import MediaFile
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.media import MediaFileRepository
from heritage_crafts.features.media.schemas import MediaListOut, MediaOut, SignedUrlOut
from heritage_crafts.utils.media_files import build_object_key, clean_original_name, prefix_for_mime, validate_bytes
from heritage_crafts.utils.s3 import (
    delete_media_object,
    make_s3_internal,
    make_s3_public,
    presign_get_url,
    put_media_object,
)

logger = get_logger(__name__)


class MediaService:
    def __init__(
        self,
        *,
        repo: MediaFileRepository,
        s3_client_internal_factory: Callable[[], object] = make_s3_internal,
        s3_client_public_factory: Callable[[], object] = make_s3_public,
    ):
        self.repo = repo
        self._s3_internal_factory = s3_client_internal_factory
        self._s3_public_factory = s3_client_public_factory
        self.settings = settings

    def _get_owned(self, media_id: int, user: User) -> MediaFile:
        media = self.repo.get(media_id)
        if not media:
            raise NotFoundError("Media not found")
        if media.owner_id != user.id and not user.is_admin:
            raise ForbiddenError("Forbidden")
        return media

    def store(self, raw: bytes, *, owner: User, original_name: Optional[str] = None) -> MediaOut:
        try:
            checked = validate_bytes(raw, max_mb=self.settings.MAX_UPLOAD_MB)
        except ValueError as e:
            raise InvalidOperationError(str(e))

        bucket = self.settings.S3_BUCKET
        key = build_object_key(prefix=prefix_for_mime(checked.mime), owner_id=owner.id, ext_with_dot=checked.ext)
        put_media_object(
            self._s3_internal_factory(), bucket=bucket, key=key, raw=raw, mime=checked.mime, sha256=checked.sha256
        )

        media = self.repo.create(
            object_key=key,
            bucket=bucket,
            mime_type=checked.mime,
            bytes=checked.size,
            sha256=checked.sha256,
            original_name=clean_original_name(original_name),
            owner_id=owner.id,
        )
        logger.info("Media %s uploaded by user %s (%s, %s bytes)", media.id, owner.id, checked.mime, checked.size)
        return MediaOut.model_validate(media)

    async def upload(self, file: UploadFile, *, owner: User) -> MediaOut:
        raw = await file.read()
        return self.store(raw, owner=owner, original_name=file.filename)

    def signed_url(self, media_id: int, user: User) -> SignedUrlOut:
        media = self._get_owned(media_id, user)
        s3 = self._s3_public_factory()
        url = presign_get_url(
            s3,
            bucket=media.bucket,
            key=media.object_key,
            content_type=media.mime_type,
            ttl=self.settings.PRESIGN_TTL_SECONDS,
        )
        return SignedUrlOut(id=media.id, url=url, expires_in=self.settings.PRESIGN_TTL_SECONDS)

    def delete(self, media_id: int, user: User) -> None:
        media = self._get_owned(media_id, user)
        try:
            delete_media_object(self._s3_internal_factory(), bucket=media.bucket, key=media.object_key)
        finally:
            # La ligne disparaît même si le stockage a échoué (objet orphelin toléré)
            self.repo.delete(media)

    def list_mine(self, user: User, *, offset: int = 0, limit: int = 100) -> MediaListOut:
        rows = self.repo.list_for_owner(user.id, offset=offset, limit=limit)
        return MediaListOut(items=[MediaOut.model_validate(m) for m in rows])
