# storefront/repos/cart_repo.py
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from storefront.data.models.cart import CartModel
from storefront.domain.status import CartStatus
from storefront.utils.errors import ConflictError


class CartRepo:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_cart_by_session(self, session_id: str) -> CartModel | None:
        #a session can own several retired carts, the newest one is current
        result = await self.db.execute(
            select(CartModel)
            .where(CartModel.session_id == session_id)
            .order_by(CartModel.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    def add(self, cart: CartModel) -> None:
        self.db.add(cart)

    async def delete(self, cart: CartModel) -> None:
        await self.db.delete(cart)

    async def commit(self) -> None:
        """
        Commit the unit of work.
        A version mismatch on the cart row means another request won the race.
        """
        try:
            await self.db.commit()
        except StaleDataError as e:
            await self.db.rollback()
            raise ConflictError("Cart was modified by another request, retry the operation") from e

    async def rollback(self) -> None:
        await self.db.rollback()

    async def expire_stale_carts(self, cutoff: datetime) -> int:
        """Bulk-mark active carts untouched since ``cutoff`` as expired."""
        result = await self.db.execute(
            update(CartModel)
            .where(
                CartModel.status == CartStatus.ACTIVE.value,
                CartModel.updated_at < cutoff,
            )
            .values(
                status=CartStatus.EXPIRED.value,
                version=CartModel.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount
