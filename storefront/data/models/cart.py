# storefront/data/models/cart.py
from decimal import Decimal

from sqlalchemy import Column, DateTime, Integer, Numeric, String
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.domain.totals import Totals


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    session_id = Column(String(255), nullable=False, index=True)

    status = Column(String(20), nullable=False, default="active")
    version = Column(Integer, nullable=False)

    #derived from items, rewritten after every item change
    subtotal = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    tax = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.position",
        collection_class=ordering_list("position"),
        lazy="selectin",
    )

    #optimistic locking, UPDATE ... WHERE version = :old
    __mapper_args__ = {"version_id_col": version}

    @property
    def totals(self) -> Totals:
        return Totals(subtotal=self.subtotal, tax=self.tax, total=self.total)

    def apply_totals(self, totals: Totals) -> None:
        self.subtotal = totals.subtotal
        self.tax = totals.tax
        self.total = totals.total
