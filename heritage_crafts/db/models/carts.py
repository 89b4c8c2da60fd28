from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from .base import BaseModelDB


class CartItem(BaseModelDB, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_cart_item_user_product"),
    )

    user_id: int = Field(foreign_key="user.id", index=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    quantity: int = Field(ge=1)
