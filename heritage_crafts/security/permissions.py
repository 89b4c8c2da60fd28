"""
➡️ But : Contrôle d'accès par rôle (LEARNER ⊂ CRAFTSMAN ⊂ ADMIN).

has_permission(role, perm) répond à "ce rôle peut-il… ?",
require_permission / require_role lèvent ForbiddenError sinon.
"""

from enum import Enum
from typing import Dict, FrozenSet

from heritage_crafts.core.errors import ForbiddenError
from heritage_crafts.db.models.enums import UserRole


class Permission(str, Enum):
    # Utilisateurs
    READ_USERS = "read:users"
    WRITE_USERS = "write:users"
    DELETE_USERS = "delete:users"

    # Profils
    READ_OWN_PROFILE = "read:own_profile"
    WRITE_OWN_PROFILE = "write:own_profile"
    READ_ANY_PROFILE = "read:any_profile"
    WRITE_ANY_PROFILE = "write:any_profile"

    # Profils artisans
    CREATE_CRAFTSMAN_PROFILE = "create:craftsman_profile"
    READ_CRAFTSMAN_PROFILES = "read:craftsman_profiles"
    WRITE_OWN_CRAFTSMAN_PROFILE = "write:own_craftsman_profile"
    WRITE_ANY_CRAFTSMAN_PROFILE = "write:any_craftsman_profile"
    VERIFY_CRAFTSMAN = "verify:craftsman"

    # Cours
    CREATE_COURSE = "create:course"
    READ_COURSES = "read:courses"
    WRITE_OWN_COURSE = "write:own_course"
    WRITE_ANY_COURSE = "write:any_course"
    DELETE_OWN_COURSE = "delete:own_course"
    DELETE_ANY_COURSE = "delete:any_course"

    # Réservations
    CREATE_BOOKING = "create:booking"
    READ_OWN_BOOKINGS = "read:own_bookings"
    READ_ANY_BOOKINGS = "read:any_bookings"
    MANAGE_COURSE_BOOKINGS = "manage:course_bookings"
    CANCEL_OWN_BOOKING = "cancel:own_booking"
    CANCEL_ANY_BOOKING = "cancel:any_booking"

    # Produits
    CREATE_PRODUCT = "create:product"
    READ_PRODUCTS = "read:products"
    WRITE_OWN_PRODUCT = "write:own_product"
    WRITE_ANY_PRODUCT = "write:any_product"
    DELETE_OWN_PRODUCT = "delete:own_product"
    DELETE_ANY_PRODUCT = "delete:any_product"

    # Commandes
    CREATE_ORDER = "create:order"
    READ_OWN_ORDERS = "read:own_orders"
    READ_ANY_ORDERS = "read:any_orders"
    MANAGE_PRODUCT_ORDERS = "manage:product_orders"
    PROCESS_PAYMENTS = "process:payments"

    # Événements / ateliers
    CREATE_EVENT = "create:event"
    REGISTER_EVENTS = "register:events"

    # Médias
    UPLOAD_MEDIA = "upload:media"
    READ_MEDIA = "read:media"
    DELETE_OWN_MEDIA = "delete:own_media"
    DELETE_ANY_MEDIA = "delete:any_media"

    # Social
    FOLLOW_USERS = "follow:users"
    CREATE_COMMENTS = "create:comments"
    MODERATE_CONTENT = "moderate:content"

    # Admin
    VIEW_ANALYTICS = "view:analytics"
    MANAGE_SYSTEM = "manage:system"
    MANAGE_COUPONS = "manage:coupons"


LEARNER_PERMISSIONS: FrozenSet[Permission] = frozenset({
    Permission.READ_OWN_PROFILE,
    Permission.WRITE_OWN_PROFILE,
    Permission.READ_CRAFTSMAN_PROFILES,
    Permission.READ_COURSES,
    Permission.READ_PRODUCTS,
    Permission.READ_MEDIA,
    Permission.CREATE_BOOKING,
    Permission.READ_OWN_BOOKINGS,
    Permission.CANCEL_OWN_BOOKING,
    Permission.CREATE_ORDER,
    Permission.READ_OWN_ORDERS,
    Permission.FOLLOW_USERS,
    Permission.CREATE_COMMENTS,
    Permission.UPLOAD_MEDIA,
    Permission.DELETE_OWN_MEDIA,
    Permission.REGISTER_EVENTS,
})

CRAFTSMAN_PERMISSIONS: FrozenSet[Permission] = LEARNER_PERMISSIONS | {
    Permission.CREATE_CRAFTSMAN_PROFILE,
    Permission.WRITE_OWN_CRAFTSMAN_PROFILE,
    Permission.CREATE_COURSE,
    Permission.WRITE_OWN_COURSE,
    Permission.DELETE_OWN_COURSE,
    Permission.MANAGE_COURSE_BOOKINGS,
    Permission.CREATE_EVENT,
    Permission.CREATE_PRODUCT,
    Permission.WRITE_OWN_PRODUCT,
    Permission.DELETE_OWN_PRODUCT,
    Permission.MANAGE_PRODUCT_ORDERS,
    Permission.READ_ANY_BOOKINGS,  # limité à leurs propres cours
    Permission.PROCESS_PAYMENTS,   # limité à leurs propres produits
}

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[Permission]] = {
    UserRole.LEARNER: LEARNER_PERMISSIONS,
    UserRole.CRAFTSMAN: CRAFTSMAN_PERMISSIONS,
    UserRole.ADMIN: frozenset(Permission),
}


def has_permission(role: UserRole, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def require_permission(user, permission: Permission) -> None:
    if not has_permission(user.role, permission):
        raise ForbiddenError("Insufficient permissions")


def require_role(user, *roles: UserRole) -> None:
    if user.role not in roles:
        raise ForbiddenError("Insufficient permissions")
