"""
➡️ But : Recherche unifiée sur les artisans (VERIFIED), cours (ACTIVE) et produits
(ACTIVE / OUT_OF_STOCK) avec un classement pondéré.

score = pertinence × 0.4 + popularité × 0.3 + qualité × 0.2 + fraîcheur × 0.1

Quand l'utilisateur est connu, ses catégories préférées et sa fourchette de prix
ajoutent un bonus au score.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from heritage_crafts.core.errors import InvalidOperationError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.base import utcnow
from heritage_crafts.db.models.enums import (
    CourseStatus,
    EntityType,
    ProductStatus,
    VerificationStatus,
)
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.behavior import BehaviorEventRepository
from heritage_crafts.db.repositories.courses import CourseRepository
from heritage_crafts.db.repositories.craftsmen import CraftsmanProfileRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.db.repositories.users import UserRepository
from heritage_crafts.features.recommendations.services import BehaviorService, RecommendationService
from heritage_crafts.features.search.schemas import (
    SEARCH_SORTS,
    SEARCH_TYPES,
    SearchFacetsOut,
    SearchFiltersIn,
    SearchResponseOut,
    SearchResultOut,
    SuggestionOut,
)
from heritage_crafts.utils.multilingual import get_text, normalize_language

logger = get_logger(__name__)

POPULARITY_WINDOW = timedelta(days=30)
RECENCY_HORIZON_DAYS = 365.0
CANDIDATE_LIMIT = 500

ENTITY_TYPES = {
    "craftsman": EntityType.CRAFTSMAN_PROFILE,
    "course": EntityType.COURSE,
    "product": EntityType.PRODUCT,
}


def _values(text) -> List[str]:
    if isinstance(text, dict):
        return [str(v).lower() for v in text.values() if v]
    if text:
        return [str(text).lower()]
    return []


def relevance_score(q: str, title, description, categories: Sequence[str]) -> float:
    """Exact titre 1.0, titre contient 0.8, catégorie contient 0.6, description contient 0.5."""
    needle = q.strip().lower()
    if not needle:
        return 0.0
    titles = _values(title)
    if any(t == needle for t in titles):
        return 1.0
    if any(needle in t for t in titles):
        return 0.8
    if any(needle in c.lower() for c in categories if c):
        return 0.6
    if any(needle in d for d in _values(description)):
        return 0.5
    return 0.0


def recency_score(created_at: datetime, now: datetime) -> float:
    age_days = max((now - created_at).total_seconds(), 0) / 86400
    return 1 - min(age_days / RECENCY_HORIZON_DAYS, 1)


class SearchService:
    def __init__(
        self,
        *,
        craftsman_repo: CraftsmanProfileRepository,
        course_repo: CourseRepository,
        product_repo: ProductRepository,
        user_repo: UserRepository,
        behavior_repo: BehaviorEventRepository,
        behavior_svc: BehaviorService,
        recommendation_svc: RecommendationService,
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.craftsmen = craftsman_repo
        self.courses = course_repo
        self.products = product_repo
        self.users = user_repo
        self.events = behavior_repo
        self.behavior = behavior_svc
        self.recommendations = recommendation_svc
        self.now_fn = now_fn

    # --------------- Candidats ---------------
    def _craftsman_candidates(self, q: str, filters: SearchFiltersIn, language: str) -> List[dict]:
        out = []
        for p in self.craftsmen.search(
            q=q or None, location=filters.location, status=VerificationStatus.VERIFIED, limit=CANDIDATE_LIMIT
        ):
            specialties = p.craft_specialties or []
            if filters.category and filters.category not in specialties:
                continue
            owner = self.users.get(p.user_id)
            name = (owner.name or owner.email) if owner else ""
            quality = 0.5
            if len(get_text(p.bio, language)) > 50:
                quality += 0.2
            if p.image_url:
                quality += 0.1
            quality += 0.2  # VERIFIED
            if (p.experience_years or 0) > 5:
                quality += 0.1
            out.append(
                dict(
                    type="craftsman", entity=p, title=name, title_raw=name, description_raw=p.bio,
                    description=get_text(p.bio, language), categories=specialties,
                    craft_category=specialties[0] if specialties else None,
                    price=None, image_url=p.image_url, quality=quality,
                )
            )
        return out

    def _course_candidates(self, q: str, filters: SearchFiltersIn, language: str) -> List[dict]:
        out = []
        for c in self.courses.search(
            q=q or None, category=filters.category, status=CourseStatus.ACTIVE, limit=CANDIDATE_LIMIT
        ):
            price = Decimal(c.price) if c.price is not None else None
            if filters.min_price is not None and (price is None or price < filters.min_price):
                continue
            if filters.max_price is not None and (price is None or price > filters.max_price):
                continue
            description = get_text(c.description, language)
            quality = 0.5
            if len(description) > 50:
                quality += 0.2
            if c.images:
                quality += 0.1
            if price and price > 0:
                quality += 0.1
            if c.duration_hours and c.duration_hours > 0:
                quality += 0.1
            out.append(
                dict(
                    type="course", entity=c, title=get_text(c.title, language), title_raw=c.title,
                    description_raw=c.description, description=description, categories=[c.craft_category],
                    craft_category=c.craft_category, price=price,
                    image_url=c.images[0] if c.images else None, quality=quality,
                )
            )
        return out

    def _product_candidates(self, q: str, filters: SearchFiltersIn, language: str) -> List[dict]:
        out = []
        for p in self.products.search(
            q=q or None,
            category=filters.category,
            min_price=filters.min_price,
            max_price=filters.max_price,
            limit=CANDIDATE_LIMIT,
        ):
            if p.status not in (ProductStatus.ACTIVE, ProductStatus.OUT_OF_STOCK):
                continue
            description = get_text(p.description, language)
            quality = 0.5
            if len(description) > 50:
                quality += 0.2
            if p.images:
                quality += 0.1
            if p.inventory_quantity > 0:
                quality += 0.1
            if p.price and p.price > 0:
                quality += 0.1
            out.append(
                dict(
                    type="product", entity=p, title=get_text(p.name, language), title_raw=p.name,
                    description_raw=p.description, description=description,
                    categories=[p.craft_category] if p.craft_category else [],
                    craft_category=p.craft_category, price=Decimal(p.price),
                    image_url=p.images[0] if p.images else None, quality=quality,
                )
            )
        return out

    # --------------- Recherche ---------------
    def search(
        self,
        q: str = "",
        *,
        types: Optional[List[str]] = None,
        filters: Optional[SearchFiltersIn] = None,
        sort: str = "relevance",
        offset: int = 0,
        limit: int = 20,
        user: Optional[User] = None,
        language: Optional[str] = None,
    ) -> SearchResponseOut:
        q = (q or "").strip()
        filters = filters or SearchFiltersIn()
        types = types or list(SEARCH_TYPES)
        unknown = [t for t in types if t not in SEARCH_TYPES]
        if unknown:
            raise InvalidOperationError(f"Unsupported search type: {', '.join(unknown)}")
        if sort not in SEARCH_SORTS:
            raise InvalidOperationError(f"Unsupported sort: {sort}")

        lang = normalize_language(language or (user.preferred_language if user else None))
        builders = {
            "craftsman": self._craftsman_candidates,
            "course": self._course_candidates,
            "product": self._product_candidates,
        }
        candidates = []
        for t in types:
            candidates += builders[t](q, filters, lang)

        now = self.now_fn()
        since = now - POPULARITY_WINDOW
        popularity_maps = {t: self.events.count_map_since(ENTITY_TYPES[t], since) for t in types}

        prefs = self.recommendations.preferences(user) if user else None

        results: List[SearchResultOut] = []
        for cand in candidates:
            entity = cand["entity"]
            relevance = relevance_score(q, cand["title_raw"], cand["description_raw"], cand["categories"])
            if q and relevance == 0:
                continue
            popularity = min(popularity_maps[cand["type"]].get(entity.id, 0) / 100, 1)
            quality = min(cand["quality"], 1.0)
            recency = recency_score(entity.created_at, now)
            score = relevance * 0.4 + popularity * 0.3 + quality * 0.2 + recency * 0.1

            if prefs is not None:
                category = cand["craft_category"]
                if category in prefs.craft_categories:
                    score += (len(prefs.craft_categories) - prefs.craft_categories.index(category)) * 0.1
                price = cand["price"]
                if prefs.price_range and price is not None and prefs.price_range.min <= price <= prefs.price_range.max:
                    score += 0.2

            results.append(
                SearchResultOut(
                    type=cand["type"],
                    id=entity.id,
                    title=cand["title"],
                    description=cand["description"],
                    craft_category=cand["craft_category"],
                    price=cand["price"],
                    image_url=cand["image_url"],
                    created_at=entity.created_at,
                    relevance=relevance,
                    score=round(score, 4),
                )
            )

        popularity_of = {(r.type, r.id): popularity_maps[r.type].get(r.id, 0) for r in results}
        if sort == "date":
            results.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        elif sort == "popularity":
            results.sort(key=lambda r: (popularity_of[(r.type, r.id)], r.score), reverse=True)
        elif sort == "price_asc":
            results.sort(key=lambda r: (r.price is None, r.price or 0))
        elif sort == "price_desc":
            results.sort(key=lambda r: (r.price is not None, r.price or 0), reverse=True)
        else:
            results.sort(key=lambda r: r.score, reverse=True)

        type_counts: Dict[str, int] = {}
        category_counts: Dict[str, int] = {}
        for r in results:
            type_counts[r.type] = type_counts.get(r.type, 0) + 1
            if r.craft_category:
                category_counts[r.craft_category] = category_counts.get(r.craft_category, 0) + 1

        if q:
            self.behavior.record_search(user.id if user else None, q, len(results))
        logger.debug("Search q=%r types=%s -> %s result(s)", q, types, len(results))

        return SearchResponseOut(
            query=q,
            items=results[offset: offset + limit],
            total=len(results),
            facets=SearchFacetsOut(types=type_counts, categories=category_counts),
        )

    def suggestions(self, q: str, *, limit: int = 10) -> List[SuggestionOut]:
        prefix = (q or "").strip().lower()
        if not prefix:
            return []

        out: List[SuggestionOut] = []
        seen = set()

        def add(text: Optional[str], type_: str) -> None:
            if not text or not text.lower().startswith(prefix):
                return
            key = text.lower()
            if key in seen:
                return
            seen.add(key)
            out.append(SuggestionOut(text=text, type=type_))

        for course in self.courses.search(q=q, status=CourseStatus.ACTIVE, limit=50):
            for text in course.title.values():
                add(text, "course")
        for product in self.products.search(q=q, status=ProductStatus.ACTIVE, limit=50):
            for text in product.name.values():
                add(text, "product")
        for profile in self.craftsmen.search(q=q, status=VerificationStatus.VERIFIED, limit=50):
            owner = self.users.get(profile.user_id)
            if owner:
                add(owner.name, "craftsman")
            for specialty in profile.craft_specialties or []:
                add(specialty, "category")
        for category, _ in self.courses.categories_with_counts() + self.products.categories_with_counts():
            add(category, "category")

        return out[:limit]
