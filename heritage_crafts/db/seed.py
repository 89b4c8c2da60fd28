"""
➡️ But : Remplir une base vide avec un jeu de données de démonstration
(utilisateurs, artisans, cours, produits, coupons) décrit dans un YAML.

🔹 Règles :

Chaque fonction est idempotente : une ligne déjà présente (même email,
même code, même artisan) n'est pas recréée.

Les références entre objets passent par des clés YAML (user_key, craftsman_key).
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from sqlmodel import Session, select

from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.coupons import Coupon
from heritage_crafts.db.models.courses import Course
from heritage_crafts.db.models.craftsmen import CraftsmanProfile
from heritage_crafts.db.models.enums import (
    CourseStatus,
    DiscountType,
    ProductStatus,
    UserRole,
    VerificationStatus,
)
from heritage_crafts.db.models.products import Product
from heritage_crafts.db.models.users import User
from heritage_crafts.security.password import hash_password

logger = get_logger(__name__)


# -----------------------------
# YAML loader
# -----------------------------
def load_seed_yaml(seed_path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(seed_path)
    if not path.exists():
        raise FileNotFoundError(f"Seed YAML introuvable: {path}")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Le YAML de seed doit contenir un objet racine (mapping).")
    return data


def _as_datetime(value: Any) -> datetime:
    # PyYAML convertit déjà les timestamps ISO ; on accepte aussi les chaînes
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime.fromisoformat(str(value)).replace(tzinfo=None)


# -----------------------------
# Seeders
# -----------------------------
def seed_users(session: Session, data: Dict[str, Any]) -> Dict[str, int]:
    """Retourne user_key -> User.id (existants compris)."""
    ids: Dict[str, int] = {}
    created = 0
    for u in data.get("users", []):
        user = session.exec(select(User).where(User.email == u["email"])).first()
        if not user:
            user = User(
                email=u["email"],
                hashed_password=hash_password(u["password"]),
                name=u.get("name"),
                role=UserRole(u.get("role", UserRole.LEARNER.value)),
                preferred_language=u.get("preferred_language", "zh-HK"),
                location=u.get("location"),
            )
            session.add(user)
            session.flush()
            created += 1
        ids[u["key"]] = user.id
    session.commit()
    logger.info("✅ %s utilisateurs insérés (%s déjà présents).", created, len(ids) - created)
    return ids


def seed_craftsmen(session: Session, data: Dict[str, Any], user_ids: Dict[str, int]) -> Dict[str, int]:
    """Retourne craftsman_key -> CraftsmanProfile.id."""
    ids: Dict[str, int] = {}
    created = 0
    for c in data.get("craftsmen", []):
        user_id = user_ids.get(c["user_key"])
        if user_id is None:
            logger.warning("⚠️ Artisan %s ignoré : user_key %s inconnu", c["key"], c["user_key"])
            continue
        profile = session.exec(select(CraftsmanProfile).where(CraftsmanProfile.user_id == user_id)).first()
        if not profile:
            profile = CraftsmanProfile(
                user_id=user_id,
                craft_specialties=c.get("craft_specialties", []),
                bio=c.get("bio"),
                experience_years=c.get("experience_years"),
                workshop_location=c.get("workshop_location"),
                contact_info=c.get("contact_info"),
                verification_status=VerificationStatus(c.get("verification_status", "PENDING")),
            )
            session.add(profile)
            session.flush()
            created += 1
        ids[c["key"]] = profile.id
    session.commit()
    logger.info("✅ %s profils artisans insérés.", created)
    return ids


def seed_courses(session: Session, data: Dict[str, Any], craftsman_ids: Dict[str, int]) -> None:
    created = 0
    for c in data.get("courses", []):
        craftsman_id = craftsman_ids.get(c["craftsman_key"])
        if craftsman_id is None:
            continue
        existing = session.exec(
            select(Course).where(Course.craftsman_id == craftsman_id, Course.craft_category == c["craft_category"])
        ).all()
        if any(e.title == c["title"] for e in existing):
            continue
        session.add(Course(
            craftsman_id=craftsman_id,
            title=c["title"],
            description=c.get("description"),
            craft_category=c["craft_category"],
            max_participants=c.get("max_participants"),
            duration_hours=Decimal(str(c["duration_hours"])) if c.get("duration_hours") is not None else None,
            price=Decimal(str(c["price"])) if c.get("price") is not None else None,
            status=CourseStatus(c.get("status", "ACTIVE")),
        ))
        created += 1
    session.commit()
    logger.info("✅ %s cours insérés.", created)


def seed_products(session: Session, data: Dict[str, Any], craftsman_ids: Dict[str, int]) -> None:
    created = 0
    for p in data.get("products", []):
        craftsman_id = craftsman_ids.get(p["craftsman_key"])
        if craftsman_id is None:
            continue
        existing = session.exec(select(Product).where(Product.craftsman_id == craftsman_id)).all()
        if any(e.name == p["name"] for e in existing):
            continue
        quantity = int(p.get("inventory_quantity", 0))
        session.add(Product(
            craftsman_id=craftsman_id,
            name=p["name"],
            description=p.get("description"),
            price=Decimal(str(p["price"])),
            inventory_quantity=quantity,
            is_customizable=bool(p.get("is_customizable", False)),
            craft_category=p.get("craft_category"),
            status=ProductStatus.ACTIVE if quantity > 0 else ProductStatus.OUT_OF_STOCK,
        ))
        created += 1
    session.commit()
    logger.info("✅ %s produits insérés.", created)


def seed_coupons(session: Session, data: Dict[str, Any]) -> None:
    created = 0
    for c in data.get("coupons", []):
        if session.exec(select(Coupon).where(Coupon.code == c["code"])).first():
            continue
        session.add(Coupon(
            code=c["code"],
            description=c.get("description"),
            discount_type=DiscountType(c["discount_type"]),
            discount_value=Decimal(str(c["discount_value"])),
            minimum_order_amount=(
                Decimal(str(c["minimum_order_amount"])) if c.get("minimum_order_amount") is not None else None
            ),
            maximum_discount_amount=(
                Decimal(str(c["maximum_discount_amount"])) if c.get("maximum_discount_amount") is not None else None
            ),
            usage_limit=c.get("usage_limit"),
            valid_from=_as_datetime(c["valid_from"]),
            valid_until=_as_datetime(c["valid_until"]),
            is_active=c.get("is_active", True),
            applicable_categories=c.get("applicable_categories"),
        ))
        created += 1
    session.commit()
    logger.info("✅ %s coupons insérés.", created)


def seed_all(session: Session, seed_path: Union[str, Path]) -> None:
    data = load_seed_yaml(seed_path)
    user_ids = seed_users(session, data)
    craftsman_ids = seed_craftsmen(session, data, user_ids)
    seed_courses(session, data, craftsman_ids)
    seed_products(session, data, craftsman_ids)
    seed_coupons(session, data)
