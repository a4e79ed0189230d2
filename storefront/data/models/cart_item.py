# storefront/data/models/cart_item.py
import uuid

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base


def new_item_id() -> str:
    return uuid.uuid4().hex


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String(32), primary_key=True, default=new_item_id)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    product_id = Column(String(64), nullable=False)
    variant_id = Column(String(64), nullable=True)
    quantity = Column(Integer, nullable=False)
    #unit price captured when the item was added
    price = Column(Numeric(10, 2), nullable=False)

    cart = relationship("CartModel", back_populates="items")
