# storefront/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: AsyncSession):
        self.db = db

    def add(self, order: OrderModel) -> None:
        self.db.add(order)

    async def get_order(self, order_number: str) -> OrderModel | None:
        result = await self.db.execute(
            select(OrderModel).where(OrderModel.order_number == order_number)
        )
        return result.scalar_one_or_none()

    async def save(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        await self.db.commit()
        return order

    async def refresh(self, order: OrderModel) -> None:
        await self.db.refresh(order)
