# storefront/data/models/order.py
from sqlalchemy import JSON, Column, DateTime, Integer, Numeric, String, Text

from storefront.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(64), nullable=False, unique=True, index=True)
    session_id = Column(String(255), nullable=True)

    customer = Column(JSON, nullable=False)
    #frozen copy of the cart lines, never a reference to cart_items
    items = Column(JSON, nullable=False)

    subtotal = Column(Numeric(10, 2), nullable=False)
    tax = Column(Numeric(10, 2), nullable=False)
    shipping_method = Column(String(100), nullable=False)
    shipping_cost = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), nullable=False, default="pending")
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_method = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    @property
    def shipping(self) -> dict:
        return {"method": self.shipping_method, "cost": self.shipping_cost}
