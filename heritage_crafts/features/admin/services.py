"""
Tableau de bord administrateur : compteurs globaux + activité récente.
"""

from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.enums import ReportStatus, UserRole, VerificationStatus
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.bookings import BookingRepository
from heritage_crafts.db.repositories.comments import ReportRepository
from heritage_crafts.db.repositories.courses import CourseRepository
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.db.repositories.orders import OrderRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.db.repositories.users import UserRepository
from heritage_crafts.features.admin.schemas import ActivityOut, DashboardOut
from heritage_crafts.security.permissions import Permission, require_permission

logger = get_logger(__name__)

RECENT_ACTIVITY_LIMIT = 10


class AdminService:
    def __init__(
        self,
        *,
        user_repo: UserRepository,
        craftsman_repo: CraftsmanProfileRepository,
        course_repo: CourseRepository,
        product_repo: ProductRepository,
        order_repo: OrderRepository,
        booking_repo: BookingRepository,
        report_repo: ReportRepository,
    ):
        self.users = user_repo
        self.craftsmen = craftsman_repo
        self.courses = course_repo
        self.products = product_repo
        self.orders = order_repo
        self.bookings = booking_repo
        self.reports = report_repo

    def _recent_activities(self):
        activities = [
            ActivityOut(
                type="user_registered",
                entity_id=u.id,
                user_id=u.id,
                description=f"{u.name or u.email} registered",
                created_at=u.created_at,
            )
            for u in self.users.recent(RECENT_ACTIVITY_LIMIT)
        ]
        activities += [
            ActivityOut(
                type="order_created",
                entity_id=o.id,
                user_id=o.user_id,
                description=f"Order #{o.id} ({o.total_amount})",
                created_at=o.created_at,
            )
            for o in self.orders.recent(RECENT_ACTIVITY_LIMIT)
        ]
        activities += [
            ActivityOut(
                type="booking_created",
                entity_id=b.id,
                user_id=b.user_id,
                description=f"Booking #{b.id} for course {b.course_id}",
                created_at=b.created_at,
            )
            for b in self.bookings.recent(RECENT_ACTIVITY_LIMIT)
        ]
        activities.sort(key=lambda a: a.created_at, reverse=True)
        return activities[:RECENT_ACTIVITY_LIMIT]

    def dashboard(self, actor: User) -> DashboardOut:
        require_permission(actor, Permission.VIEW_ANALYTICS)
        by_role = {role.value: 0 for role in UserRole}
        by_role.update(self.users.count_by_role())
        return DashboardOut(
            total_users=sum(by_role.values()),
            users_by_role=by_role,
            total_craftsmen=self.craftsmen.count(),
            pending_verifications=self.craftsmen.count_by_status(VerificationStatus.PENDING),
            total_courses=self.courses.count(),
            total_products=self.products.count(),
            total_orders=self.orders.count(),
            pending_reports=self.reports.count_by_status(ReportStatus.PENDING),
            recent_activities=self._recent_activities(),
        )
