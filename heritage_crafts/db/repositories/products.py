from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import String, cast
from sqlmodel import select, func, or_

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.products import Product
from heritage_crafts.db.models.enums import ProductStatus


class ProductRepository(BaseRepository[Product]):
    """CRUD produits + filtres boutique + requêtes de stock."""
    model = Product

    def _filtered(
        self,
        stmt,
        *,
        category: Optional[str],
        craftsman_id: Optional[int],
        status: Optional[ProductStatus],
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
        in_stock: Optional[bool],
        q: Optional[str],
    ):
        if category:
            stmt = stmt.where(Product.craft_category == category)
        if craftsman_id is not None:
            stmt = stmt.where(Product.craftsman_id == craftsman_id)
        if status is not None:
            stmt = stmt.where(Product.status == status)
        if min_price is not None:
            stmt = stmt.where(Product.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Product.price <= max_price)
        if in_stock:
            stmt = stmt.where(Product.inventory_quantity > 0)
        if q:
            like = f"%{q}%"
            stmt = stmt.where(
                or_(
                    cast(Product.name, String).ilike(like),
                    cast(Product.description, String).ilike(like),
                    Product.craft_category.ilike(like),
                )
            )
        return stmt

    def search(
        self,
        *,
        category: Optional[str] = None,
        craftsman_id: Optional[int] = None,
        status: Optional[ProductStatus] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        in_stock: Optional[bool] = None,
        q: Optional[str] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> Sequence[Product]:
        stmt = self._filtered(
            select(Product), category=category, craftsman_id=craftsman_id, status=status,
            min_price=min_price, max_price=max_price, in_stock=in_stock, q=q,
        )
        stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def count_filtered(self, **filters) -> int:
        filters.setdefault("category", None)
        filters.setdefault("craftsman_id", None)
        filters.setdefault("status", None)
        filters.setdefault("min_price", None)
        filters.setdefault("max_price", None)
        filters.setdefault("in_stock", None)
        filters.setdefault("q", None)
        return self.session.exec(self._filtered(select(func.count(Product.id)), **filters)).one()

    def list_low_stock(self, *, threshold: int, craftsman_id: Optional[int] = None) -> Sequence[Product]:
        stmt = select(Product).where(
            Product.inventory_quantity <= threshold,
            Product.status.in_((ProductStatus.ACTIVE, ProductStatus.OUT_OF_STOCK)),
        )
        if craftsman_id is not None:
            stmt = stmt.where(Product.craftsman_id == craftsman_id)
        stmt = stmt.order_by(Product.inventory_quantity.asc(), Product.id.asc())
        return self.session.exec(stmt).all()

    def list_for_alert_check(self, craftsman_id: Optional[int] = None) -> Sequence[Product]:
        stmt = select(Product).where(Product.status.in_((ProductStatus.ACTIVE, ProductStatus.OUT_OF_STOCK)))
        if craftsman_id is not None:
            stmt = stmt.where(Product.craftsman_id == craftsman_id)
        return self.session.exec(stmt.order_by(Product.id)).all()

    def list_for_craftsmen(self, craftsman_ids: List[int], *, limit: int = 20) -> Sequence[Product]:
        if not craftsman_ids:
            return []
        stmt = (
            select(Product)
            .where(Product.craftsman_id.in_(craftsman_ids), Product.status == ProductStatus.ACTIVE)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
        )
        return self.session.exec(stmt).all()

    def categories_with_counts(self) -> List[Tuple[str, int]]:
        stmt = (
            select(Product.craft_category, func.count(Product.id))
            .where(Product.status == ProductStatus.ACTIVE, Product.craft_category.is_not(None))
            .group_by(Product.craft_category)
            .order_by(Product.craft_category)
        )
        return [(cat, n) for cat, n in self.session.exec(stmt).all()]

    def count_for_craftsman(self, craftsman_id: int) -> int:
        return self.session.exec(select(func.count(Product.id)).where(Product.craftsman_id == craftsman_id)).one()

    def average_rating_for_craftsman(self, craftsman_id: int) -> float:
        stmt = select(func.avg(Product.average_rating)).where(
            Product.craftsman_id == craftsman_id, Product.review_count > 0
        )
        avg = self.session.exec(stmt).one()
        return round(float(avg), 2) if avg is not None else 0.0
