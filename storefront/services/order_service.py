# storefront/services/order_service.py
import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.data.models.cart import CartModel
from storefront.data.models.order import OrderModel
from storefront.domain.schemas import OrderCreate
from storefront.domain.status import (
    CartStatus,
    OrderStatus,
    PaymentStatus,
    apply_order_status,
    apply_payment_status,
)
from storefront.domain.totals import ORDER_TAX_RATE, compute_totals, to_money
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import is_expired
from storefront.utils.errors import ConflictError, ExpiredError, NotFoundError, ValidationError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)


def generate_order_number(now: datetime) -> str:
    """ORD-<epoch ms>-<random suffix>: sortable by time, unique within the same ms."""
    return f"ORD-{int(now.timestamp() * 1000)}-{secrets.token_hex(3).upper()}"


class OrderService:
    """
    Order domain, kept apart from CartService.
    Converts a cart into an order and runs the status machine afterwards.
    """

    def __init__(self, db: AsyncSession):
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)

    async def create_order(self, payload: OrderCreate) -> OrderModel:
        """
        Use case: order from the session's cart.

        1. cart must exist, hold items, be active and not expired
        2. totals with the order tax rate plus shipping
        3. order insert + cart marked converted, one commit
        4. cart deletion, best effort; the order stands if it fails
        """
        now = datetime.now(timezone.utc)
        cart = await self._load_cart(payload.session_id, now)

        totals = compute_totals(cart.items, tax_rate=ORDER_TAX_RATE, shipping_cost=payload.shipping.cost)

        order = OrderModel(
            order_number=generate_order_number(now),
            session_id=cart.session_id,
            customer=payload.customer.model_dump(),
            items=[
                {
                    "product_id": item.product_id,
                    "variant_id": item.variant_id,
                    "quantity": item.quantity,
                    "price": str(to_money(item.price)),
                }
                for item in cart.items
            ],
            subtotal=totals.subtotal,
            tax=totals.tax,
            shipping_method=payload.shipping.method,
            shipping_cost=to_money(payload.shipping.cost),
            total=totals.total,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=payload.payment_method,
            notes=payload.notes,
            created_at=now,
            updated_at=now,
        )

        self.repo.add(order)
        cart.status = CartStatus.CONVERTED.value
        cart.updated_at = now
        await self.carts.commit()

        logger.info(f"Order {order.order_number} created from cart {cart.id}, total {order.total}")

        await self._retire_cart(cart, order)
        return order

    async def get_order(self, order_number: str) -> OrderModel:
        order = await self.repo.get_order(order_number)
        if not order:
            raise NotFoundError(f"No order found with order number: {order_number}")
        return order

    async def update_status(self, order_number: str, status: OrderStatus | str) -> OrderModel:
        new_status = self._parse(OrderStatus, status, "Order status")
        order = await self.get_order(order_number)

        previous = order.status, order.payment_status
        new_status, new_payment = apply_order_status(new_status, PaymentStatus(order.payment_status))
        order.status = new_status.value
        order.payment_status = new_payment.value
        order.updated_at = datetime.now(timezone.utc)
        await self.repo.save(order)

        logger.info(
            f"Order {order_number}: status {previous[0]} -> {order.status}, "
            f"payment {previous[1]} -> {order.payment_status}"
        )
        return order

    async def update_payment_status(self, order_number: str, payment_status: PaymentStatus | str) -> OrderModel:
        new_payment = self._parse(PaymentStatus, payment_status, "Payment status")
        order = await self.get_order(order_number)

        previous = order.status, order.payment_status
        new_status, new_payment = apply_payment_status(OrderStatus(order.status), new_payment)
        order.status = new_status.value
        order.payment_status = new_payment.value
        order.updated_at = datetime.now(timezone.utc)
        await self.repo.save(order)

        logger.info(
            f"Order {order_number}: payment {previous[1]} -> {order.payment_status}, "
            f"status {previous[0]} -> {order.status}"
        )
        return order

    #helpers
    async def _load_cart(self, session_id: str, now: datetime) -> CartModel:
        cart = await self.carts.get_cart_by_session(session_id)
        if not cart:
            raise NotFoundError("Cart not found")
        if not cart.items:
            raise NotFoundError("Cart is empty")

        if cart.status == CartStatus.ACTIVE.value and is_expired(cart, now):
            cart.status = CartStatus.EXPIRED.value
            await self.carts.commit()
        if cart.status == CartStatus.EXPIRED.value:
            raise ExpiredError("Cart has expired")
        if cart.status != CartStatus.ACTIVE.value:
            raise ConflictError("Cart is no longer active")
        return cart

    async def _retire_cart(self, cart: CartModel, order: OrderModel) -> None:
        #rollback expires every instance in the session, read ids up front
        cart_id, order_number = cart.id, order.order_number
        try:
            await self.carts.delete(cart)
            await self.carts.commit()
        except (SQLAlchemyError, ConflictError) as e:
            #the order is already durable, the cart stays 'converted' and unusable
            await self.carts.rollback()
            logger.warning(
                f"Order {order_number} created but cart {cart_id} could not be deleted: {e}"
            )
            await self.repo.refresh(order)

    @staticmethod
    def _parse(enum_cls: Type[E], value, label: str) -> E:
        try:
            return enum_cls(value)
        except ValueError:
            allowed = ", ".join(m.value for m in enum_cls)
            raise ValidationError(f"{label} must be one of: {allowed}") from None
