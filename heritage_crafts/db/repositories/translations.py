from datetime import datetime
from typing import Optional

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.translations import TranslationCache


class TranslationCacheRepository(BaseRepository[TranslationCache]):
    model = TranslationCache

    def get_entry(self, source_hash: str, source_language: str, target_language: str) -> Optional[TranslationCache]:
        stmt = select(TranslationCache).where(
            TranslationCache.source_hash == source_hash,
            TranslationCache.source_language == source_language,
            TranslationCache.target_language == target_language,
        )
        return self.session.exec(stmt).first()

    def count_expired(self, now: datetime) -> int:
        return self.session.exec(
            select(func.count(TranslationCache.id)).where(TranslationCache.expires_at <= now)
        ).one()

    def delete_expired(self, now: datetime) -> int:
        rows = self.session.exec(select(TranslationCache).where(TranslationCache.expires_at <= now)).all()
        for row in rows:
            self.session.delete(row)
        self.session.commit()
        return len(rows)

    def delete_least_used(self, n: int) -> int:
        """Supprime les n entrées les moins utilisées (puis les plus anciennes)."""
        if n <= 0:
            return 0
        stmt = (
            select(TranslationCache)
            .order_by(TranslationCache.use_count.asc(), TranslationCache.last_used.asc())
            .limit(n)
        )
        rows = self.session.exec(stmt).all()
        for row in rows:
            self.session.delete(row)
        self.session.commit()
        return len(rows)

    def total_uses(self) -> int:
        return int(self.session.exec(select(func.coalesce(func.sum(TranslationCache.use_count), 0))).one())
