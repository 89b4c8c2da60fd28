"""
Panier persistant (une ligne par utilisateur et produit).

Les quantités sont toujours bornées par le stock disponible au moment de l'ajout ;
validate() revérifie l'ensemble juste avant la création d'une commande.
"""

from decimal import Decimal
from typing import Tuple

from heritage_crafts.core.errors import InvalidOperationError, NotFoundError
from heritage_crafts.core.logging_config import get_logger
from heritage_crafts.db.models.enums import ProductStatus
from heritage_crafts.db.models.products import Product
from heritage_crafts.db.repositories.carts import CartItemRepository
from heritage_crafts.db.repositories.products import ProductRepository
from heritage_crafts.utils.multilingual import get_text
from heritage_crafts.features.cart.schemas import (
    CartItemIn,
    CartLineOut,
    CartSummaryOut,
    CartValidationOut,
)

logger = get_logger(__name__)


class CartService:
    def __init__(self, *, repo: CartItemRepository, product_repo: ProductRepository):
        self.repo = repo
        self.products = product_repo

    # --------------- Helpers ---------------
    def _get_sellable(self, product_id: int) -> Product:
        product = self.products.get(product_id)
        if not product:
            raise NotFoundError("Product not found")
        if product.status != ProductStatus.ACTIVE:
            raise InvalidOperationError("Product is not available")
        return product

    @staticmethod
    def _ensure_stock(product: Product, quantity: int) -> None:
        if quantity > product.inventory_quantity:
            raise InvalidOperationError(f"Only {product.inventory_quantity} items available in stock")

    # --------------- Commands ---------------
    def add(self, user_id: int, payload: CartItemIn) -> CartSummaryOut:
        if payload.quantity <= 0:
            raise InvalidOperationError("Quantity must be greater than 0")
        product = self._get_sellable(payload.product_id)

        existing = self.repo.get_for_user_and_product(user_id, product.id)
        new_quantity = payload.quantity + (existing.quantity if existing else 0)
        self._ensure_stock(product, new_quantity)

        if existing:
            self.repo.update(existing, quantity=new_quantity)
        else:
            self.repo.create(user_id=user_id, product_id=product.id, quantity=new_quantity)
        return self.summary(user_id)

    def update(self, user_id: int, product_id: int, quantity: int) -> CartSummaryOut:
        item = self.repo.get_for_user_and_product(user_id, product_id)
        if not item:
            raise NotFoundError("Item not in cart")
        if quantity <= 0:
            self.repo.delete(item)
            return self.summary(user_id)

        product = self._get_sellable(product_id)
        self._ensure_stock(product, quantity)
        self.repo.update(item, quantity=quantity)
        return self.summary(user_id)

    def remove(self, user_id: int, product_id: int) -> CartSummaryOut:
        item = self.repo.get_for_user_and_product(user_id, product_id)
        if item:
            self.repo.delete(item)
        return self.summary(user_id)

    def clear(self, user_id: int, *, commit: bool = True) -> None:
        self.repo.clear_for_user(user_id, commit=commit)

    def merge(self, user_id: int, items) -> Tuple[CartSummaryOut, int]:
        """Fusionne un panier invité ; les lignes invalides sont ignorées."""
        merged = 0
        for item in items:
            try:
                self.add(user_id, item)
                merged += 1
            except (InvalidOperationError, NotFoundError) as e:
                logger.info("Guest cart item %s skipped for user %s: %s", item.product_id, user_id, e)
        return self.summary(user_id), merged

    # --------------- Queries ---------------
    def summary(self, user_id: int) -> CartSummaryOut:
        lines = []
        total_items = 0
        total_amount = Decimal("0.00")
        items = self.repo.list_for_user(user_id)
        products = {p.id: p for p in self.products.list_by_ids([i.product_id for i in items])}

        for item in items:
            product = products.get(item.product_id)
            if not product:
                continue
            subtotal = (product.price * item.quantity).quantize(Decimal("0.01"))
            lines.append(
                CartLineOut(
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    quantity=item.quantity,
                    subtotal=subtotal,
                    status=product.status,
                    available_quantity=product.inventory_quantity,
                )
            )
            # seuls les produits vendables comptent dans les totaux
            if product.status == ProductStatus.ACTIVE:
                total_items += item.quantity
                total_amount += subtotal

        return CartSummaryOut(items=lines, total_items=total_items, total_amount=total_amount)

    def validate(self, user_id: int, *, language: str = "en") -> CartValidationOut:
        errors = []
        items = self.repo.list_for_user(user_id)
        products = {p.id: p for p in self.products.list_by_ids([i.product_id for i in items])}

        for item in items:
            product = products.get(item.product_id)
            if not product:
                errors.append(f"Product {item.product_id} no longer exists")
                continue
            name = get_text(product.name, language) or f"#{product.id}"
            if product.status != ProductStatus.ACTIVE:
                errors.append(f"{name} is no longer available")
            elif item.quantity > product.inventory_quantity:
                errors.append(f"Only {product.inventory_quantity} of {name} available")

        return CartValidationOut(valid=not errors, errors=errors)
