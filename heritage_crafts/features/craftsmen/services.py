from typing import Optional

from heritage_crafts.core.errors import ConflictError, ForbiddenError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.craftsmen import CraftsmanProfile
from heritage_crafts.db.models.enums import UserRole, VerificationStatus
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.bookings import BookingRepository
from heritage_crafts.db.repositories.courses import CourseRepository
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.db.repositories.follows import FollowRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.db.repositories.users import UserRepository
from heritage_crafts.security.permissions import require_role
from heritage_crafts.features.craftsmen.schemas import (
    CraftsmanProfileCreateIn,
    CraftsmanProfileListOut,
    CraftsmanProfileOut,
    CraftsmanProfileUpdateIn,
    CraftsmanStatsOut,
)

logger = get_logger(__name__)


class CraftsmanService:
    def __init__(
        self,
        *,
        repo: CraftsmanProfileRepository,
        user_repo: UserRepository,
        course_repo: CourseRepository,
        product_repo: ProductRepository,
        booking_repo: BookingRepository,
        follow_repo: FollowRepository,
    ):
        self.repo = repo
        self.users = user_repo
        self.courses = course_repo
        self.products = product_repo
        self.bookings = booking_repo
        self.follows = follow_repo

    # --------------- Helpers ---------------
    def _to_out(self, profile: CraftsmanProfile) -> CraftsmanProfileOut:
        out = CraftsmanProfileOut.model_validate(profile)
        owner = self.users.get(profile.user_id)
        out.user_name = owner.name if owner else None
        return out

    def get_entity(self, profile_id: int) -> CraftsmanProfile:
        profile = self.repo.get(profile_id)
        if not profile:
            raise NotFoundError("Craftsman profile not found")
        return profile

    def get_for_user(self, user: User) -> CraftsmanProfile:
        """Profil artisan de l'utilisateur courant (obligatoire pour publier cours / produits)."""
        profile = self.repo.get_by_user(user.id)
        if not profile:
            raise ForbiddenError("A craftsman profile is required")
        return profile

    def _ensure_owner_or_admin(self, profile: CraftsmanProfile, user: User) -> None:
        if profile.user_id != user.id and not user.is_admin:
            raise ForbiddenError("Forbidden")

    # --------------- Commands ---------------
    def create(self, user: User, payload: CraftsmanProfileCreateIn) -> CraftsmanProfileOut:
        require_role(user, UserRole.CRAFTSMAN, UserRole.ADMIN)
        if self.repo.get_by_user(user.id):
            raise ConflictError("Craftsman profile already exists")
        profile = self.repo.create(
            user_id=user.id,
            verification_status=VerificationStatus.PENDING,
            **payload.model_dump(),
        )
        logger.info("Craftsman profile %s created for user %s", profile.id, user.id)
        return self._to_out(profile)

    def update(self, profile_id: int, user: User, payload: CraftsmanProfileUpdateIn) -> CraftsmanProfileOut:
        profile = self.get_entity(profile_id)
        self._ensure_owner_or_admin(profile, user)
        changes = payload.model_dump(exclude_unset=True)
        if changes:
            profile = self.repo.update(profile, **changes)
        return self._to_out(profile)

    def verify(self, profile_id: int, actor: User, status: VerificationStatus) -> CraftsmanProfileOut:
        require_role(actor, UserRole.ADMIN)
        profile = self.repo.update(self.get_entity(profile_id), verification_status=status)
        logger.info("Craftsman profile %s set to %s by admin %s", profile_id, status.value, actor.id)
        return self._to_out(profile)

    # --------------- Queries ---------------
    def get(self, profile_id: int) -> CraftsmanProfileOut:
        return self._to_out(self.get_entity(profile_id))

    def search(
        self,
        *,
        q: Optional[str] = None,
        craft: Optional[str] = None,
        location: Optional[str] = None,
        verified_only: bool = False,
        status: Optional[VerificationStatus] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> CraftsmanProfileListOut:
        if verified_only:
            status = VerificationStatus.VERIFIED
        rows = self.repo.search(q=q, craft=craft, location=location, status=status, offset=offset, limit=limit)
        total = self.repo.count_filtered(q=q, craft=craft, location=location, status=status)
        return CraftsmanProfileListOut(items=[self._to_out(r) for r in rows], total=total)

    def stats(self, profile_id: int) -> CraftsmanStatsOut:
        profile = self.get_entity(profile_id)
        return CraftsmanStatsOut(
            course_count=self.courses.count_for_craftsman(profile.id),
            product_count=self.products.count_for_craftsman(profile.id),
            follower_count=self.follows.count_followers(profile.user_id),
            total_bookings=self.bookings.count_for_craftsman(profile.id),
            average_product_rating=self.products.average_rating_for_craftsman(profile.id),
        )
