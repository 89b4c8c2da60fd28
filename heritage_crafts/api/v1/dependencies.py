"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_course_service() : crée un CourseService à partir d'une session DB.

pagination() : paramètres communs page et size.

get_current_user() : utilisateur authentifié via le bearer.

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Facile à surcharger dans les tests (app.dependency_overrides).
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional

from fastapi import Depends, Header, Query, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from heritage_crafts.core.config import jwt_settings
from heritage_crafts.core.errors import UnauthorizedError
from heritage_crafts.db.models.users import User
from heritage_crafts.db.session import get_session

from heritage_crafts.db.repositories.behavior import BehaviorEventRepository
from heritage_crafts.db.repositories.bookings import BookingRepository
from heritage_crafts.db.repositories.carts import CartItemRepository
from heritage_crafts.db.repositories.comments import CommentLikeRepository, CommentRepository, ReportRepository
from heritage_crafts.db.repositories.coupons import CouponRepository
from heritage_crafts.db.repositories.courses import CourseRepository
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.db.repositories.events import EventRegistrationRepository, EventRepository
from heritage_crafts.db.repositories.follows import FollowRepository
from heritage_crafts.db.repositories.inventory import InventoryAlertRepository, InventoryAlertSettingRepository
from heritage_crafts.db.repositories.materials import LearningMaterialRepository, LearningProgressRepository
from heritage_crafts.db.repositories.media import MediaFileRepository
from heritage_crafts.db.repositories.notifications import (
    NotificationPreferenceRepository,
    NotificationRepository,
)
from heritage_crafts.db.repositories.orders import OrderItemRepository, OrderRepository
from heritage_crafts.db.repositories.payments import PaymentRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.db.repositories.refresh_tokens import RefreshTokenRepository
from heritage_crafts.db.repositories.reviews import ProductReviewRepository, ReviewHelpfulVoteRepository
from heritage_crafts.db.repositories.translations import TranslationCacheRepository
from heritage_crafts.db.repositories.users import UserRepository

from heritage_crafts.features.admin.services import AdminService
from heritage_crafts.features.authentication.services import AuthService
from heritage_crafts.features.bookings.services import BookingService
from heritage_crafts.features.cart.services import CartService
from heritage_crafts.features.comments.services import CommentService
from heritage_crafts.features.coupons.services import CouponService
from heritage_crafts.features.courses.services import CourseService
from heritage_crafts.features.craftsmen.services import CraftsmanService
from heritage_crafts.features.events.services import EventService
from heritage_crafts.features.inventory.services import InventoryService
from heritage_crafts.features.materials.services import LearningMaterialService
from heritage_crafts.features.media.services import MediaService
from heritage_crafts.features.notifications.services import NotificationService
from heritage_crafts.features.orders.services import OrderService
from heritage_crafts.features.payments.gateways import PaymentGateway, default_gateways
from heritage_crafts.features.payments.services import PaymentService
from heritage_crafts.features.products.services import ProductService
from heritage_crafts.features.recommendations.services import BehaviorService, RecommendationService
from heritage_crafts.features.reviews.services import ReviewService
from heritage_crafts.features.search.services import SearchService
from heritage_crafts.features.social.services import SocialService
from heritage_crafts.features.translations.providers import default_provider
from heritage_crafts.features.translations.services import TranslationService
from heritage_crafts.features.users.services import UserService


def pagination(
    page: int = Query(1, ge=1, description="Numéro de page", examples=[1]),
    size: int = Query(20, ge=1, le=100, description="Taille de page", examples=[20]),
):
    offset = (page - 1) * size
    return {"offset": offset, "limit": size}


# -----------------------------
# Authentication data
# -----------------------------
bearer_scheme = HTTPBearer(auto_error=False)


def get_access_token_from_bearer(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> str:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Missing token")
    return credentials.credentials


def get_optional_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Optional[str]:
    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


@dataclass
class ClientContext:
    ip: Optional[str]
    user_agent: Optional[str]


def get_client_ip_and_ua(
    x_forwarded_for: Optional[str] = Header(default=None, alias="X-Forwarded-For"),
    x_real_ip: Optional[str] = Header(default=None, alias="X-Real-IP"),
    user_agent: Optional[str] = Header(default=None, alias="User-Agent"),
) -> ClientContext:
    """
    Récupère l'IP depuis X-Forwarded-For > X-Real-IP (si derrière un proxy),
    et le User-Agent (utile pour l'audit des refresh tokens).
    """
    ip = None
    if x_forwarded_for:
        ip = x_forwarded_for.split(",")[0].strip()
    elif x_real_ip:
        ip = x_real_ip
    return ClientContext(ip=ip, user_agent=user_agent)


# -----------------------------
# Repositories
# -----------------------------
def get_user_repository(session: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(session)

def get_refresh_token_repository(session: Session = Depends(get_session)) -> RefreshTokenRepository:
    return RefreshTokenRepository(session)

def get_craftsman_repository(session: Session = Depends(get_session)) -> CraftsmanProfileRepository:
    return CraftsmanProfileRepository(session)

def get_course_repository(session: Session = Depends(get_session)) -> CourseRepository:
    return CourseRepository(session)

def get_booking_repository(session: Session = Depends(get_session)) -> BookingRepository:
    return BookingRepository(session)

def get_product_repository(session: Session = Depends(get_session)) -> ProductRepository:
    return ProductRepository(session)

def get_cart_repository(session: Session = Depends(get_session)) -> CartItemRepository:
    return CartItemRepository(session)

def get_order_repository(session: Session = Depends(get_session)) -> OrderRepository:
    return OrderRepository(session)

def get_order_item_repository(session: Session = Depends(get_session)) -> OrderItemRepository:
    return OrderItemRepository(session)

def get_payment_repository(session: Session = Depends(get_session)) -> PaymentRepository:
    return PaymentRepository(session)

def get_coupon_repository(session: Session = Depends(get_session)) -> CouponRepository:
    return CouponRepository(session)

def get_follow_repository(session: Session = Depends(get_session)) -> FollowRepository:
    return FollowRepository(session)

def get_notification_repository(session: Session = Depends(get_session)) -> NotificationRepository:
    return NotificationRepository(session)

def get_notification_preference_repository(
    session: Session = Depends(get_session),
) -> NotificationPreferenceRepository:
    return NotificationPreferenceRepository(session)

def get_behavior_repository(session: Session = Depends(get_session)) -> BehaviorEventRepository:
    return BehaviorEventRepository(session)

def get_report_repository(session: Session = Depends(get_session)) -> ReportRepository:
    return ReportRepository(session)


# -----------------------------
# Auth / Users
# -----------------------------
def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    refresh_repo: RefreshTokenRepository = Depends(get_refresh_token_repository),
) -> AuthService:
    return AuthService(user_repo=user_repo, refresh_repo=refresh_repo, jwt_settings=jwt_settings)


def get_current_user(
    access_token: str = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
) -> User:
    return auth_svc.get_current_user(access_token=access_token)


def get_optional_user(
    access_token: Optional[str] = Depends(get_optional_access_token),
    auth_svc: AuthService = Depends(get_auth_service),
) -> Optional[User]:
    if not access_token:
        return None
    return auth_svc.get_current_user(access_token=access_token)


def get_user_service(
    user_repo: UserRepository = Depends(get_user_repository),
    refresh_repo: RefreshTokenRepository = Depends(get_refresh_token_repository),
) -> UserService:
    return UserService(user_repo, refresh_repo)


# -----------------------------
# Notifications
# -----------------------------
def get_notification_service(
    repo: NotificationRepository = Depends(get_notification_repository),
    pref_repo: NotificationPreferenceRepository = Depends(get_notification_preference_repository),
) -> NotificationService:
    return NotificationService(repo=repo, pref_repo=pref_repo)


# -----------------------------
# Catalogue (artisans, cours, réservations, produits)
# -----------------------------
def get_craftsman_service(
    repo: CraftsmanProfileRepository = Depends(get_craftsman_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    course_repo: CourseRepository = Depends(get_course_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    booking_repo: BookingRepository = Depends(get_booking_repository),
    follow_repo: FollowRepository = Depends(get_follow_repository),
) -> CraftsmanService:
    return CraftsmanService(
        repo=repo,
        user_repo=user_repo,
        course_repo=course_repo,
        product_repo=product_repo,
        booking_repo=booking_repo,
        follow_repo=follow_repo,
    )


def get_course_service(
    repo: CourseRepository = Depends(get_course_repository),
    booking_repo: BookingRepository = Depends(get_booking_repository),
    follow_repo: FollowRepository = Depends(get_follow_repository),
    craftsman_svc: CraftsmanService = Depends(get_craftsman_service),
    notification_svc: NotificationService = Depends(get_notification_service),
) -> CourseService:
    return CourseService(
        repo=repo,
        booking_repo=booking_repo,
        follow_repo=follow_repo,
        craftsman_svc=craftsman_svc,
        notification_svc=notification_svc,
    )


def get_booking_service(
    repo: BookingRepository = Depends(get_booking_repository),
    course_repo: CourseRepository = Depends(get_course_repository),
    craftsman_repo: CraftsmanProfileRepository = Depends(get_craftsman_repository),
    notification_svc: NotificationService = Depends(get_notification_service),
) -> BookingService:
    return BookingService(
        repo=repo, course_repo=course_repo, craftsman_repo=craftsman_repo, notification_svc=notification_svc
    )


def get_product_service(
    repo: ProductRepository = Depends(get_product_repository),
    order_repo: OrderRepository = Depends(get_order_repository),
    cart_repo: CartItemRepository = Depends(get_cart_repository),
    craftsman_svc: CraftsmanService = Depends(get_craftsman_service),
) -> ProductService:
    return ProductService(repo=repo, order_repo=order_repo, cart_repo=cart_repo, craftsman_svc=craftsman_svc)


def get_material_service(
    session: Session = Depends(get_session),
    course_repo: CourseRepository = Depends(get_course_repository),
    craftsman_repo: CraftsmanProfileRepository = Depends(get_craftsman_repository),
    booking_repo: BookingRepository = Depends(get_booking_repository),
) -> LearningMaterialService:
    return LearningMaterialService(
        repo=LearningMaterialRepository(session),
        progress_repo=LearningProgressRepository(session),
        course_repo=course_repo,
        craftsman_repo=craftsman_repo,
        booking_repo=booking_repo,
        media_repo=MediaFileRepository(session),
    )


# -----------------------------
# Événements / ateliers
# -----------------------------
def get_event_service(
    session: Session = Depends(get_session),
    notification_svc: NotificationService = Depends(get_notification_service),
) -> EventService:
    return EventService(
        repo=EventRepository(session),
        registration_repo=EventRegistrationRepository(session),
        notification_svc=notification_svc,
    )


# -----------------------------
# Commerce (panier, coupons, commandes, paiements)
# -----------------------------
def get_cart_service(
    repo: CartItemRepository = Depends(get_cart_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
) -> CartService:
    return CartService(repo=repo, product_repo=product_repo)


def get_coupon_service(repo: CouponRepository = Depends(get_coupon_repository)) -> CouponService:
    return CouponService(repo=repo)


def get_order_service(
    session: Session = Depends(get_session),
    repo: OrderRepository = Depends(get_order_repository),
    item_repo: OrderItemRepository = Depends(get_order_item_repository),
    craftsman_repo: CraftsmanProfileRepository = Depends(get_craftsman_repository),
    product_svc: ProductService = Depends(get_product_service),
    cart_svc: CartService = Depends(get_cart_service),
    coupon_svc: CouponService = Depends(get_coupon_service),
    notification_svc: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(
        session=session,
        repo=repo,
        item_repo=item_repo,
        craftsman_repo=craftsman_repo,
        product_svc=product_svc,
        cart_svc=cart_svc,
        coupon_svc=coupon_svc,
        notification_svc=notification_svc,
    )


@lru_cache
def get_payment_gateways() -> Dict[str, PaymentGateway]:
    """Construit une seule fois : les clients httpx (pool de connexions) sont partagés."""
    return default_gateways()


def get_payment_service(
    repo: PaymentRepository = Depends(get_payment_repository),
    order_repo: OrderRepository = Depends(get_order_repository),
    order_svc: OrderService = Depends(get_order_service),
    notification_svc: NotificationService = Depends(get_notification_service),
    gateways: Dict[str, PaymentGateway] = Depends(get_payment_gateways),
) -> PaymentService:
    return PaymentService(
        repo=repo,
        order_repo=order_repo,
        order_svc=order_svc,
        notification_svc=notification_svc,
        gateways=gateways,
    )


def get_review_service(
    session: Session = Depends(get_session),
    product_repo: ProductRepository = Depends(get_product_repository),
    order_repo: OrderRepository = Depends(get_order_repository),
) -> ReviewService:
    return ReviewService(
        repo=ProductReviewRepository(session),
        vote_repo=ReviewHelpfulVoteRepository(session),
        product_repo=product_repo,
        order_repo=order_repo,
    )


def get_inventory_service(
    session: Session = Depends(get_session),
    product_repo: ProductRepository = Depends(get_product_repository),
    craftsman_repo: CraftsmanProfileRepository = Depends(get_craftsman_repository),
) -> InventoryService:
    return InventoryService(
        repo=InventoryAlertRepository(session),
        setting_repo=InventoryAlertSettingRepository(session),
        product_repo=product_repo,
        craftsman_repo=craftsman_repo,
    )


# -----------------------------
# Communauté (commentaires, suivi)
# -----------------------------
def get_comment_service(
    session: Session = Depends(get_session),
    report_repo: ReportRepository = Depends(get_report_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    course_repo: CourseRepository = Depends(get_course_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    craftsman_repo: CraftsmanProfileRepository = Depends(get_craftsman_repository),
) -> CommentService:
    return CommentService(
        repo=CommentRepository(session),
        like_repo=CommentLikeRepository(session),
        report_repo=report_repo,
        user_repo=user_repo,
        course_repo=course_repo,
        product_repo=product_repo,
        craftsman_repo=craftsman_repo,
    )


def get_social_service(
    repo: FollowRepository = Depends(get_follow_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    craftsman_repo: CraftsmanProfileRepository = Depends(get_craftsman_repository),
    course_repo: CourseRepository = Depends(get_course_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    notification_svc: NotificationService = Depends(get_notification_service),
) -> SocialService:
    return SocialService(
        repo=repo,
        user_repo=user_repo,
        craftsman_repo=craftsman_repo,
        course_repo=course_repo,
        product_repo=product_repo,
        notification_svc=notification_svc,
    )


# -----------------------------
# Découverte (comportement, recommandations, recherche)
# -----------------------------
def get_behavior_service(repo: BehaviorEventRepository = Depends(get_behavior_repository)) -> BehaviorService:
    return BehaviorService(repo=repo)


def get_recommendation_service(
    behavior_repo: BehaviorEventRepository = Depends(get_behavior_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    craftsman_repo: CraftsmanProfileRepository = Depends(get_craftsman_repository),
    course_repo: CourseRepository = Depends(get_course_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
) -> RecommendationService:
    return RecommendationService(
        behavior_repo=behavior_repo,
        user_repo=user_repo,
        craftsman_repo=craftsman_repo,
        course_repo=course_repo,
        product_repo=product_repo,
    )


def get_search_service(
    craftsman_repo: CraftsmanProfileRepository = Depends(get_craftsman_repository),
    course_repo: CourseRepository = Depends(get_course_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    behavior_repo: BehaviorEventRepository = Depends(get_behavior_repository),
    behavior_svc: BehaviorService = Depends(get_behavior_service),
    recommendation_svc: RecommendationService = Depends(get_recommendation_service),
) -> SearchService:
    return SearchService(
        craftsman_repo=craftsman_repo,
        course_repo=course_repo,
        product_repo=product_repo,
        user_repo=user_repo,
        behavior_repo=behavior_repo,
        behavior_svc=behavior_svc,
        recommendation_svc=recommendation_svc,
    )


# -----------------------------
# Traduction / médias / admin
# -----------------------------
@lru_cache
def get_translation_provider():
    return default_provider()


def get_translation_service(
    session: Session = Depends(get_session),
    provider=Depends(get_translation_provider),
) -> TranslationService:
    return TranslationService(repo=TranslationCacheRepository(session), provider=provider)


def get_media_service(session: Session = Depends(get_session)) -> MediaService:
    return MediaService(repo=MediaFileRepository(session))


def get_admin_service(
    user_repo: UserRepository = Depends(get_user_repository),
    craftsman_repo: CraftsmanProfileRepository = Depends(get_craftsman_repository),
    course_repo: CourseRepository = Depends(get_course_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    order_repo: OrderRepository = Depends(get_order_repository),
    booking_repo: BookingRepository = Depends(get_booking_repository),
    report_repo: ReportRepository = Depends(get_report_repository),
) -> AdminService:
    return AdminService(
        user_repo=user_repo,
        craftsman_repo=craftsman_repo,
        course_repo=course_repo,
        product_repo=product_repo,
        order_repo=order_repo,
        booking_repo=booking_repo,
        report_repo=report_repo,
    )
