"""
Relations de suivi entre utilisateurs et fil d'activité des artisans suivis.
"""

from heritage_crafts.core.errors import ConflictError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.enums import NotificationType
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.courses import CourseRepository
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.db.repositories.follows import FollowRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.db.repositories.users import UserRepository
from heritage_crafts.features.notifications.services import NotificationService
from heritage_crafts.features.social.schemas import (
    ActivityFeedOut,
    ActivityItemOut,
    FollowCountsOut,
    FollowListOut,
    FollowOut,
)
from heritage_crafts.features.users.schemas import PublicUserOut

logger = get_logger(__name__)


class SocialService:
    def __init__(
        self,
        *,
        repo: FollowRepository,
        user_repo: UserRepository,
        craftsman_repo: CraftsmanProfileRepository,
        course_repo: CourseRepository,
        product_repo: ProductRepository,
        notification_svc: NotificationService,
    ):
        self.repo = repo
        self.users = user_repo
        self.craftsmen = craftsman_repo
        self.courses = course_repo
        self.products = product_repo
        self.notifications = notification_svc

    def _get_user(self, user_id: int) -> User:
        user = self.users.get(user_id)
        if not user or not user.is_active:
            raise NotFoundError("User not found")
        return user

    # --------------- Commands ---------------
    def follow(self, follower: User, following_id: int) -> FollowOut:
        if follower.id == following_id:
            raise InvalidOperationError("You cannot follow yourself")
        self._get_user(following_id)
        if self.repo.get_pair(follower.id, following_id):
            raise ConflictError("Already following this user")

        self.repo.create(follower_id=follower.id, following_id=following_id)
        logger.info("User %s now follows user %s", follower.id, following_id)

        name = follower.name or follower.email
        self.notifications.notify(
            following_id,
            NotificationType.NEW_FOLLOWER,
            title={"zh-HK": "新關注者", "en": "New follower"},
            message={"zh-HK": f"{name} 關注了你", "en": f"{name} started following you"},
            details={"follower_id": follower.id},
        )
        return FollowOut(follower_id=follower.id, following_id=following_id, following=True)

    def unfollow(self, follower: User, following_id: int) -> FollowOut:
        pair = self.repo.get_pair(follower.id, following_id)
        if not pair:
            raise NotFoundError("Not following this user")
        self.repo.delete(pair)
        return FollowOut(follower_id=follower.id, following_id=following_id, following=False)

    # --------------- Queries ---------------
    def followers(self, user_id: int, *, offset: int = 0, limit: int = 50) -> FollowListOut:
        self._get_user(user_id)
        rows = self.repo.list_followers(user_id, offset=offset, limit=limit)
        return FollowListOut(
            items=[PublicUserOut.model_validate(u) for u in rows],
            total=self.repo.count_followers(user_id),
        )

    def following(self, user_id: int, *, offset: int = 0, limit: int = 50) -> FollowListOut:
        self._get_user(user_id)
        rows = self.repo.list_following(user_id, offset=offset, limit=limit)
        return FollowListOut(
            items=[PublicUserOut.model_validate(u) for u in rows],
            total=self.repo.count_following(user_id),
        )

    def counts(self, user_id: int) -> FollowCountsOut:
        self._get_user(user_id)
        return FollowCountsOut(
            user_id=user_id,
            followers=self.repo.count_followers(user_id),
            following=self.repo.count_following(user_id),
        )

    def is_following(self, follower_id: int, following_id: int) -> bool:
        return self.repo.get_pair(follower_id, following_id) is not None

    def activity_feed(self, user: User, *, limit: int = 20) -> ActivityFeedOut:
        """Derniers cours et produits publiés par les artisans suivis, du plus récent au plus ancien."""
        followed = self.repo.following_ids(user.id)
        craftsman_ids = [p.id for p in self.craftsmen.list_for_users(followed)]
        if not craftsman_ids:
            return ActivityFeedOut(items=[])

        items = [
            ActivityItemOut(
                type="course",
                id=c.id,
                craftsman_id=c.craftsman_id,
                title=c.title,
                craft_category=c.craft_category,
                created_at=c.created_at,
            )
            for c in self.courses.list_for_craftsmen(craftsman_ids, limit=limit)
        ]
        items += [
            ActivityItemOut(
                type="product",
                id=p.id,
                craftsman_id=p.craftsman_id,
                title=p.name,
                craft_category=p.craft_category,
                created_at=p.created_at,
            )
            for p in self.products.list_for_craftsmen(craftsman_ids, limit=limit)
        ]
        items.sort(key=lambda i: (i.created_at, i.id), reverse=True)
        return ActivityFeedOut(items=items[:limit])
