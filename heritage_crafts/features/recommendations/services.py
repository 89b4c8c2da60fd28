"""
➡️ But : Enregistrer le comportement des utilisateurs et en tirer des recommandations.

Chaque événement a un poids (vue 1 … achat 5). Les préférences (catégories,
fourchette de prix) sont calculées sur les 30 derniers jours.

🔹 Sections produites :

personal → catégories préférées de l'utilisateur

trending → entités les plus consultées sur 7 jours

category → contenu de la catégorie favorite

popular → repli quand aucune autre section n'a de contenu
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Set, Tuple

from heritage_crafts.core.errors import InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.courses import Course
from heritage_crafts.db.models.craftsmen import CraftsmanProfile
from heritage_crafts.db.models.enums import (
    BehaviorEventType,
    CourseStatus,
    EntityType,
    ProductStatus,
    VerificationStatus,
)
from heritage_crafts.db.models.products import Product
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.behavior import BehaviorEventRepository
from heritage_crafts.db.repositories.courses import CourseRepository
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.db.repositories.users import UserRepository
from heritage_crafts.features.recommendations.schemas import (
    BehaviorEventIn,
    BehaviorEventOut,
    PriceRangeOut,
    RecommendationItemOut,
    RecommendationSectionOut,
    RecommendationsOut,
    UserPreferencesOut,
)
from heritage_crafts.utils.multilingual import get_text, normalize_language

logger = get_logger(__name__)

EVENT_WEIGHTS: Dict[BehaviorEventType, int] = {
    BehaviorEventType.VIEW: 1,
    BehaviorEventType.SEARCH: 1,
    BehaviorEventType.CLICK: 2,
    BehaviorEventType.BOOKMARK: 3,
    BehaviorEventType.SHARE: 4,
    BehaviorEventType.PURCHASE: 5,
}

PREFERENCE_WINDOW = timedelta(days=30)
TRENDING_WINDOW = timedelta(days=7)
MIN_PRICE_SAMPLES = 3


def event_weight(event_type: BehaviorEventType) -> int:
    return EVENT_WEIGHTS.get(event_type, 1)


def price_range_from_samples(samples: List[Decimal]) -> Optional[Tuple[Decimal, Decimal]]:
    """Fourchette [q1 × 0.5, q3 × 1.5] ; None sous 3 échantillons."""
    if len(samples) < MIN_PRICE_SAMPLES:
        return None
    ordered = sorted(samples)
    q1 = ordered[int(len(ordered) * 0.25)]
    q3 = ordered[int(len(ordered) * 0.75)]
    low = max(Decimal("0"), q1 * Decimal("0.5"))
    return low.quantize(Decimal("0.01")), (q3 * Decimal("1.5")).quantize(Decimal("0.01"))


class BehaviorService:
    def __init__(self, *, repo: BehaviorEventRepository):
        self.repo = repo

    def track(self, user_id: Optional[int], payload: BehaviorEventIn) -> BehaviorEventOut:
        if payload.entity_id is not None and payload.entity_type is None:
            raise InvalidOperationError("entity_type is required with entity_id")
        event = self.repo.create(user_id=user_id, **payload.model_dump())
        logger.debug("Tracked %s on %s %s (user=%s)", event.event_type.value, event.entity_type, event.entity_id, user_id)
        return BehaviorEventOut.model_validate(event)

    def record_search(self, user_id: Optional[int], query: str, result_count: int) -> None:
        self.repo.create(
            user_id=user_id,
            event_type=BehaviorEventType.SEARCH,
            details={"query": query, "result_count": result_count},
        )


class RecommendationService:
    def __init__(
        self,
        *,
        behavior_repo: BehaviorEventRepository,
        user_repo: UserRepository,
        craftsman_repo: CraftsmanProfileRepository,
        course_repo: CourseRepository,
        product_repo: ProductRepository,
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.events = behavior_repo
        self.users = user_repo
        self.craftsmen = craftsman_repo
        self.courses = course_repo
        self.products = product_repo
        self.now_fn = now_fn

    # --------------- Helpers ---------------
    def _category_of(self, entity_type: Optional[EntityType], entity_id: Optional[int]) -> Optional[str]:
        if entity_id is None:
            return None
        if entity_type == EntityType.CRAFTSMAN_PROFILE:
            profile = self.craftsmen.get(entity_id)
            return profile.craft_specialties[0] if profile and profile.craft_specialties else None
        if entity_type == EntityType.COURSE:
            course = self.courses.get(entity_id)
            return course.craft_category if course else None
        if entity_type == EntityType.PRODUCT:
            product = self.products.get(entity_id)
            return product.craft_category if product else None
        return None

    def _price_of(self, entity_type: Optional[EntityType], entity_id: Optional[int]) -> Optional[Decimal]:
        if entity_id is None:
            return None
        if entity_type == EntityType.COURSE:
            entity = self.courses.get(entity_id)
        elif entity_type == EntityType.PRODUCT:
            entity = self.products.get(entity_id)
        else:
            return None
        return Decimal(entity.price) if entity and entity.price else None

    def _craftsman_item(self, profile: CraftsmanProfile, score: float, reason: str, language: str):
        owner = self.users.get(profile.user_id)
        return RecommendationItemOut(
            id=profile.id,
            type="craftsman",
            title=(owner.name or owner.email) if owner else f"#{profile.id}",
            description=get_text(profile.bio, language),
            craft_category=profile.craft_specialties[0] if profile.craft_specialties else None,
            score=score,
            reason=reason,
        )

    @staticmethod
    def _course_item(course: Course, score: float, reason: str, language: str):
        return RecommendationItemOut(
            id=course.id,
            type="course",
            title=get_text(course.title, language) or course.craft_category,
            description=get_text(course.description, language),
            craft_category=course.craft_category,
            price=course.price,
            score=score,
            reason=reason,
        )

    @staticmethod
    def _product_item(product: Product, score: float, reason: str, language: str):
        return RecommendationItemOut(
            id=product.id,
            type="product",
            title=get_text(product.name, language),
            description=get_text(product.description, language),
            craft_category=product.craft_category,
            price=product.price,
            score=score,
            reason=reason,
        )

    def _verified_with_specialty(self, category: str, *, exclude: Set[int], limit: int) -> List[CraftsmanProfile]:
        # craft_specialties est une liste JSON : filtrage côté Python
        out = []
        for profile in self.craftsmen.list_by_status(VerificationStatus.VERIFIED):
            if profile.id in exclude or category not in (profile.craft_specialties or []):
                continue
            out.append(profile)
            if len(out) >= limit:
                break
        return out

    # --------------- Préférences ---------------
    def preferences(self, user: User) -> UserPreferencesOut:
        since = self.now_fn() - PREFERENCE_WINDOW
        weights: Dict[str, int] = {}
        price_samples: List[Decimal] = []

        for event in self.events.list_for_user_since(user.id, since):
            weight = event_weight(event.event_type)
            category = self._category_of(event.entity_type, event.entity_id)
            if category:
                weights[category] = weights.get(category, 0) + weight
            price = self._price_of(event.entity_type, event.entity_id)
            if price and price > 0:
                price_samples.extend([price] * weight)

        categories = [c for c, _ in sorted(weights.items(), key=lambda kv: (-kv[1], kv[0]))][:10]
        bounds = price_range_from_samples(price_samples)
        return UserPreferencesOut(
            user_id=user.id,
            craft_categories=categories,
            price_range=PriceRangeOut(min=bounds[0], max=bounds[1]) if bounds else None,
            preferred_language=normalize_language(user.preferred_language),
        )

    def _viewed_ids(self, user: User) -> Dict[EntityType, Set[int]]:
        viewed: Dict[EntityType, Set[int]] = {}
        for event in self.events.list_for_user_since(user.id, self.now_fn() - PREFERENCE_WINDOW):
            if event.event_type == BehaviorEventType.VIEW and event.entity_type and event.entity_id:
                viewed.setdefault(event.entity_type, set()).add(event.entity_id)
        return viewed

    # --------------- Sections ---------------
    def _personal(self, user: User, prefs: UserPreferencesOut) -> List[RecommendationItemOut]:
        lang = prefs.preferred_language
        viewed = self._viewed_ids(user)
        seen_courses = viewed.get(EntityType.COURSE, set())
        items = []
        for category in prefs.craft_categories[:3]:
            for profile in self._verified_with_specialty(
                category, exclude=viewed.get(EntityType.CRAFTSMAN_PROFILE, set()), limit=3
            ):
                items.append(self._craftsman_item(profile, 0.8, f"Based on your interest in {category}", lang))

            courses = [
                c for c in self.courses.list_by_categories([category], limit=10) if c.id not in seen_courses
            ][:2]
            for course in courses:
                price = Decimal(course.price or 0)
                in_range = prefs.price_range is None or (
                    prefs.price_range.min <= price <= prefs.price_range.max
                )
                items.append(self._course_item(course, 0.9 if in_range else 0.7, f"{category} course", lang))
        return items

    def _trending(self, language: str) -> List[RecommendationItemOut]:
        since = self.now_fn() - TRENDING_WINDOW
        items = []
        for entity_id, _ in self.events.counts_by_entity_since(EntityType.CRAFTSMAN_PROFILE, since, limit=3):
            profile = self.craftsmen.get(entity_id)
            if profile:
                items.append(self._craftsman_item(profile, 0.9, "Trending craftsman", language))
        for entity_id, _ in self.events.counts_by_entity_since(EntityType.COURSE, since, limit=3):
            course = self.courses.get(entity_id)
            if course and course.status == CourseStatus.ACTIVE:
                items.append(self._course_item(course, 0.8, "Trending course", language))
        return items

    def _category(self, prefs: UserPreferencesOut) -> List[RecommendationItemOut]:
        if not prefs.craft_categories:
            return []
        top = prefs.craft_categories[0]
        lang = prefs.preferred_language
        items = [
            self._course_item(c, 0.7, f"More {top}", lang)
            for c in self.courses.list_by_categories([top], limit=3)
        ]
        products = self.products.search(category=top, status=ProductStatus.ACTIVE, in_stock=True, limit=2)
        items += [self._product_item(p, 0.7, f"More {top}", lang) for p in products]
        return items

    def _popular(self, language: str, limit: int) -> List[RecommendationItemOut]:
        half = max(1, (limit + 1) // 2)
        profiles = sorted(
            self.craftsmen.list_by_status(VerificationStatus.VERIFIED),
            key=lambda p: (p.created_at, p.id),
            reverse=True,
        )[:half]
        items = [self._craftsman_item(p, 0.6, "Popular craftsman", language) for p in profiles]
        items += [
            self._course_item(c, 0.5, "Popular course", language)
            for c in self.courses.search(status=CourseStatus.ACTIVE, limit=half)
        ]
        return items

    def recommendations(self, user: Optional[User], *, limit: int = 20) -> RecommendationsOut:
        language = normalize_language(user.preferred_language if user else None)
        raw: List[Tuple[str, str, str, List[RecommendationItemOut]]] = []

        prefs = self.preferences(user) if user else None
        if user:
            raw.append(("personal", "For you", "Personalised", self._personal(user, prefs)))
        raw.append(("trending", "Trending", "Popular this week", self._trending(language)))
        if user:
            raw.append(("category", "More to explore", "Category", self._category(prefs)))

        sections = []
        seen: Set[Tuple[str, int]] = set()
        for type_, title, reason, items in raw:
            unique = []
            for item in sorted(items, key=lambda i: i.score, reverse=True):
                key = (item.type, item.id)
                if key in seen:
                    continue
                seen.add(key)
                unique.append(item)
            if unique:
                sections.append(RecommendationSectionOut(type=type_, title=title, reason=reason, items=unique[:limit]))

        if not sections:
            popular = sorted(self._popular(language, limit), key=lambda i: i.score, reverse=True)
            sections.append(
                RecommendationSectionOut(type="popular", title="Popular", reason="Popular", items=popular[:limit])
            )
        return RecommendationsOut(sections=sections)

    def similar(
        self, entity_type: EntityType, entity_id: int, *, limit: int = 10, language: Optional[str] = None
    ) -> RecommendationSectionOut:
        lang = normalize_language(language)
        items: List[RecommendationItemOut] = []

        if entity_type == EntityType.COURSE:
            course = self.courses.get(entity_id)
            if not course:
                raise NotFoundError("Course not found")
            for c in self.courses.list_by_categories([course.craft_category], limit=limit + 1):
                if c.id != course.id:
                    items.append(self._course_item(c, 0.8, "Same category", lang))
            for c in self.courses.list_for_craftsmen([course.craftsman_id], limit=limit + 1):
                if c.id != course.id:
                    items.append(self._course_item(c, 0.7, "Same craftsman", lang))

        elif entity_type == EntityType.PRODUCT:
            product = self.products.get(entity_id)
            if not product:
                raise NotFoundError("Product not found")
            if product.craft_category:
                for p in self.products.search(
                    category=product.craft_category, status=ProductStatus.ACTIVE, limit=limit + 1
                ):
                    if p.id != product.id:
                        items.append(self._product_item(p, 0.8, "Same category", lang))
            for p in self.products.list_for_craftsmen([product.craftsman_id], limit=limit + 1):
                if p.id != product.id:
                    items.append(self._product_item(p, 0.7, "Same craftsman", lang))

        elif entity_type == EntityType.CRAFTSMAN_PROFILE:
            profile = self.craftsmen.get(entity_id)
            if not profile:
                raise NotFoundError("Craftsman profile not found")
            specialties = set(profile.craft_specialties or [])
            for other in self.craftsmen.list_by_status(VerificationStatus.VERIFIED):
                if other.id == profile.id:
                    continue
                shares_craft = bool(specialties & set(other.craft_specialties or []))
                same_place = bool(profile.workshop_location) and other.workshop_location == profile.workshop_location
                if shares_craft or same_place:
                    items.append(self._craftsman_item(other, 0.7, "Similar craftsman", lang))
        else:
            raise InvalidOperationError("Similar content is not available for this entity")

        unique: Dict[Tuple[str, int], RecommendationItemOut] = {}
        for item in items:
            key = (item.type, item.id)
            if key not in unique or unique[key].score < item.score:
                unique[key] = item
        ranked = sorted(unique.values(), key=lambda i: i.score, reverse=True)[:limit]
        return RecommendationSectionOut(type="similar", title="Similar", reason="Similar content", items=ranked)
