from decimal import Decimal
from typing import List, Optional

from heritage_crafts.core.config import settings
from heritage_crafts.core.errors import ConflictError, ForbiddenError, InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.enums import ProductStatus
from heritage_crafts.db.models.products import Product
from heritage_crafts.db.models.users import User
from heritage_crafts.db.repositories.carts import CartItemRepository
from heritage_crafts.db.repositories.orders import OrderRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.features.courses.schemas import CategoryCountOut
from heritage_crafts.features.craftsmen.services import CraftsmanService
from heritage_crafts.features.products.schemas import (
    ProductCreateIn,
    ProductListOut,
    ProductOut,
    ProductUpdateIn,
)

logger = get_logger(__name__)


def status_for_quantity(current: ProductStatus, quantity: int) -> ProductStatus:
    """Statut automatique selon le stock (un produit INACTIVE reste INACTIVE)."""
    if current == ProductStatus.INACTIVE:
        return current
    if quantity <= 0:
        return ProductStatus.OUT_OF_STOCK
    if current == ProductStatus.OUT_OF_STOCK:
        return ProductStatus.ACTIVE
    return current


class ProductService:
    def __init__(
        self,
        *,
        repo: ProductRepository,
        order_repo: OrderRepository,
        cart_repo: CartItemRepository,
        craftsman_svc: CraftsmanService,
    ):
        self.repo = repo
        self.orders = order_repo
        self.cart_items = cart_repo
        self.craftsmen = craftsman_svc

    # --------------- Helpers ---------------
    def get_entity(self, product_id: int) -> Product:
        product = self.repo.get(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def _ensure_owner_or_admin(self, product: Product, user: User) -> None:
        if user.is_admin:
            return
        profile = self.craftsmen.repo.get_by_user(user.id)
        if not profile or profile.id != product.craftsman_id:
            raise ForbiddenError("Forbidden")

    # --------------- Commands ---------------
    def create(self, user: User, payload: ProductCreateIn) -> Product:
        profile = self.craftsmen.get_for_user(user)
        data = payload.model_dump()
        data["status"] = status_for_quantity(ProductStatus.ACTIVE, data["inventory_quantity"])
        product = self.repo.create(craftsman_id=profile.id, **data)
        logger.info("Product %s created by craftsman %s", product.id, profile.id)
        return product

    def update(self, product_id: int, user: User, payload: ProductUpdateIn) -> Product:
        product = self.get_entity(product_id)
        self._ensure_owner_or_admin(product, user)
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            return product
        if changes.get("status") == ProductStatus.ACTIVE and product.inventory_quantity <= 0:
            raise InvalidOperationError("Cannot activate a product without inventory")
        return self.repo.update(product, **changes)

    def delete(self, product_id: int, user: User) -> None:
        """
        Retire le produit du catalogue (INACTIVE) et des paniers.
        La ligne reste en base : commandes passées, avis et alertes y font référence.
        """
        product = self.get_entity(product_id)
        self._ensure_owner_or_admin(product, user)
        if self.orders.has_pending_for_product(product.id):
            raise ConflictError("Cannot delete a product with pending orders")
        removed = self.cart_items.delete_for_product(product.id, commit=False)
        self.repo.update(product, status=ProductStatus.INACTIVE)
        logger.info("Product %s withdrawn by user %s (%s cart lines removed)", product_id, user.id, removed)

    def update_inventory(self, product_id: int, user: User, quantity: int) -> Product:
        if quantity < 0:
            raise InvalidOperationError("Inventory quantity cannot be negative")
        product = self.get_entity(product_id)
        self._ensure_owner_or_admin(product, user)
        return self.repo.update(
            product,
            inventory_quantity=quantity,
            status=status_for_quantity(product.status, quantity),
        )

    def reserve(self, product_id: int, quantity: int, *, commit: bool = True) -> Product:
        """Décrémente le stock (passage automatique en OUT_OF_STOCK à 0)."""
        product = self.get_entity(product_id)
        if product.inventory_quantity < quantity:
            raise ConflictError(f"Insufficient inventory for product {product_id}")
        remaining = product.inventory_quantity - quantity
        return self.repo.update(
            product,
            commit=commit,
            inventory_quantity=remaining,
            status=status_for_quantity(product.status, remaining),
        )

    def release(self, product_id: int, quantity: int, *, commit: bool = True) -> Optional[Product]:
        """Réincrémente le stock (annulation) ; réactive si le produit était en rupture."""
        product = self.repo.get(product_id)
        if not product:
            logger.warning("Cannot release inventory for missing product %s", product_id)
            return None
        restored = product.inventory_quantity + quantity
        return self.repo.update(
            product,
            commit=commit,
            inventory_quantity=restored,
            status=status_for_quantity(product.status, restored),
        )

    # --------------- Queries ---------------
    def list(
        self,
        *,
        category: Optional[str] = None,
        craftsman_id: Optional[int] = None,
        status: Optional[ProductStatus] = ProductStatus.ACTIVE,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        in_stock: Optional[bool] = None,
        q: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> ProductListOut:
        filters = dict(
            category=category, craftsman_id=craftsman_id, status=status,
            min_price=min_price, max_price=max_price, in_stock=in_stock, q=q,
        )
        rows = self.repo.search(offset=offset, limit=limit, **filters)
        return ProductListOut(
            items=[ProductOut.model_validate(r) for r in rows],
            total=self.repo.count_filtered(**filters),
        )

    def low_stock(self, user: User, *, threshold: Optional[int] = None) -> List[Product]:
        threshold = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
        if user.is_admin:
            return list(self.repo.list_low_stock(threshold=threshold))
        profile = self.craftsmen.get_for_user(user)
        return list(self.repo.list_low_stock(threshold=threshold, craftsman_id=profile.id))

    def categories(self) -> List[CategoryCountOut]:
        return [CategoryCountOut(category=c, count=n) for c, n in self.repo.categories_with_counts()]
