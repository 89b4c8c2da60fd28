from typing import Optional, Sequence

from sqlmodel import select

from heritage_crafts.db.repositories.base import BaseRepository
from heritage_crafts.db.models.carts import CartItem


class CartItemRepository(BaseRepository[CartItem]):
    model = CartItem

    def get_for_user_and_product(self, user_id: int, product_id: int) -> Optional[CartItem]:
        stmt = select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
        return self.session.exec(stmt).first()

    def list_for_user(self, user_id: int) -> Sequence[CartItem]:
        stmt = select(CartItem).where(CartItem.user_id == user_id).order_by(CartItem.created_at, CartItem.id)
        return self.session.exec(stmt).all()

    def clear_for_user(self, user_id: int, *, commit: bool = True) -> int:
        items = self.list_for_user(user_id)
        for item in items:
            self.session.delete(item)
        if commit:
            self.session.commit()
        else:
            self.session.flush()
        return len(items)

    def delete_for_product(self, product_id: int, *, commit: bool = True) -> int:
        """Retire un produit de tous les paniers (produit retiré du catalogue)."""
        items = self.session.exec(select(CartItem).where(CartItem.product_id == product_id)).all()
        for item in items:
            self.session.delete(item)
        self._persist(None, commit)
        return len(items)
