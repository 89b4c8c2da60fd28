from typing import List, Optional, Sequence

from sqlmodel import select, func

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.follows import Follow
from heritage_crafts.db.models.users import User


class FollowRepository(BaseRepository[Follow]):
    model = Follow

    def get_pair(self, follower_id: int, following_id: int) -> Optional[Follow]:
        stmt = select(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
        return self.session.exec(stmt).first()

    def list_followers(self, user_id: int, *, offset: int = 0, limit: int = 100) -> Sequence[User]:
        stmt = (
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(Follow.following_id == user_id)
            .order_by(Follow.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return self.session.exec(stmt).all()

    def list_following(self, user_id: int, *, offset: int = 0, limit: int = 100) -> Sequence[User]:
        stmt = (
            select(User)
            .join(Follow, Follow.following_id == User.id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return self.session.exec(stmt).all()

    def following_ids(self, user_id: int) -> List[int]:
        return list(self.session.exec(select(Follow.following_id).where(Follow.follower_id == user_id)).all())

    def count_followers(self, user_id: int) -> int:
        return self.session.exec(select(func.count(Follow.id)).where(Follow.following_id == user_id)).one()

    def count_following(self, user_id: int) -> int:
        return self.session.exec(select(func.count(Follow.id)).where(Follow.follower_id == user_id)).one()
