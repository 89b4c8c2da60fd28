from typing import Sequence

from sqlmodel import select

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.media import MediaFile


class MediaFileRepository(BaseRepository[MediaFile]):
    model = MediaFile

    def list_for_owner(self, owner_id: int, *, offset: int = 0, limit: int = 100) -> Sequence[MediaFile]:
        stmt = (
            select(MediaFile)
            .where(MediaFile.owner_id == owner_id)
            .order_by(MediaFile.created_at.desc(), MediaFile.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return self.session.exec(stmt).all()
