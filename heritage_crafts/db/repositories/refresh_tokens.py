from datetime import datetime
from typing import Optional, Sequence

from sqlmodel import select

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.refresh_tokens import RefreshToken
from heritage_crafts.db.models.base import utcnow


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    model = RefreshToken

    def get_by_jti(self, jti: str) -> Optional[RefreshToken]:
        return self.session.exec(select(RefreshToken).where(RefreshToken.jti == jti)).first()

    def list_active_for_user(self, user_id: int) -> Sequence[RefreshToken]:
        now = utcnow()
        stmt = select(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked_at.is_(None),
            RefreshToken.expires_at > now,
        )
        return self.session.exec(stmt).all()

    def revoke(self, jti: str, *, commit: bool = True) -> None:
        token = self.get_by_jti(jti)
        if token and token.revoked_at is None:
            self.update(token, commit=commit, revoked_at=utcnow())

    def revoke_all_for_user(self, user_id: int) -> int:
        tokens = self.list_active_for_user(user_id)
        now = utcnow()
        for token in tokens:
            token.revoked_at = now
            self.session.add(token)
        self.session.commit()
        return len(tokens)

    def delete_expired(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        rows = self.session.exec(select(RefreshToken).where(RefreshToken.expires_at <= now)).all()
        for row in rows:
            self.session.delete(row)
        self.session.commit()
        return len(rows)
