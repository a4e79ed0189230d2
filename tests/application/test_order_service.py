import re
from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from storefront.domain.schemas import CustomerIn, OrderCreate, ShippingIn
from storefront.domain.status import CartStatus, OrderStatus, PaymentStatus
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.order_service import generate_order_number
from storefront.utils.errors import ConflictError, ExpiredError, NotFoundError, ValidationError


def order_payload(session_id="sess-1", shipping_cost="3.00"):
    return OrderCreate(
        session_id=session_id,
        customer=CustomerIn(name="Ada Lovelace", email="ada@example.com"),
        payment_method="card",
        shipping=ShippingIn(method="standard", cost=Decimal(shipping_cost)),
    )


@pytest.fixture()
async def filled_cart(cart_service):
    await cart_service.create_cart("sess-1")
    await cart_service.add_item("sess-1", "prod-10", 2)
    return await cart_service.add_item("sess-1", "prod-5", 1)


class TestCreateOrder:
    async def test_totals_use_order_rate_and_shipping(self, order_service, filled_cart):
        order = await order_service.create_order(order_payload())

        assert order.subtotal == Decimal("25.00")
        assert order.tax == Decimal("2.25")
        assert order.shipping_cost == Decimal("3.00")
        assert order.total == Decimal("30.25")
        assert order.total == order.subtotal + order.tax + order.shipping_cost

    async def test_initial_state(self, order_service, filled_cart):
        order = await order_service.create_order(order_payload())

        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.payment_method == "card"
        assert order.customer["email"] == "ada@example.com"
        assert order.session_id == "sess-1"

    async def test_cart_is_deleted(self, order_service, filled_cart, database):
        await order_service.create_order(order_payload())

        async with database.session() as s:
            assert await CartRepo(s).get_cart_by_session("sess-1") is None

    async def test_items_are_a_frozen_snapshot(self, order_service, filled_cart, products, database):
        order = await order_service.create_order(order_payload())
        products.put("prod-10", price="999.00")

        async with database.session() as s:
            stored = await OrderRepo(s).get_order(order.order_number)

        assert stored.items == [
            {"product_id": "prod-10", "variant_id": None, "quantity": 2, "price": "10.00"},
            {"product_id": "prod-5", "variant_id": None, "quantity": 1, "price": "5.00"},
        ]

    async def test_new_cart_allowed_after_conversion(self, order_service, cart_service, filled_cart):
        await order_service.create_order(order_payload())
        cart = await cart_service.create_cart("sess-1")
        assert cart.items == []

    async def test_missing_cart(self, order_service):
        with pytest.raises(NotFoundError):
            await order_service.create_order(order_payload("ghost"))

    async def test_empty_cart(self, order_service, cart_service):
        await cart_service.create_cart("sess-1")
        with pytest.raises(NotFoundError, match="empty"):
            await order_service.create_order(order_payload())

    async def test_expired_cart(self, order_service, filled_cart, make_stale):
        await make_stale("sess-1")
        with pytest.raises(ExpiredError):
            await order_service.create_order(order_payload())

    async def test_inactive_cart(self, order_service, cart_service, filled_cart):
        await cart_service.abandon_cart("sess-1")
        with pytest.raises(ConflictError):
            await order_service.create_order(order_payload())

    async def test_cart_delete_failure_keeps_order(self, order_service, filled_cart, database, monkeypatch, caplog):
        carts = order_service.carts
        commit = carts.commit
        calls = []

        async def commit_failing_on_cart_delete():
            calls.append(1)
            if len(calls) == 2:
                #flush the delete so the transaction is open, then fail
                await carts.db.execute(text("SELECT 1"))
                raise OperationalError("DELETE FROM carts", {}, Exception("database is locked"))
            await commit()

        monkeypatch.setattr(carts, "commit", commit_failing_on_cart_delete)

        order = await order_service.create_order(order_payload())

        assert "could not be deleted" in caplog.text
        #still readable after the rollback
        assert order.total == Decimal("30.25")
        assert order.status == OrderStatus.PENDING.value

        async with database.session() as s:
            assert await OrderRepo(s).get_order(order.order_number) is not None
            cart = await CartRepo(s).get_cart_by_session("sess-1")
        assert cart.status == CartStatus.CONVERTED.value
        assert len(cart.items) == 2

    async def test_stale_cart_on_delete_keeps_order(self, order_service, filled_cart, monkeypatch, caplog):
        carts = order_service.carts
        commit = carts.commit
        calls = []

        async def commit_losing_race():
            calls.append(1)
            if len(calls) == 2:
                await carts.db.execute(text("SELECT 1"))
                await carts.rollback()
                raise ConflictError("Cart was modified by another request, retry the operation")
            await commit()

        monkeypatch.setattr(carts, "commit", commit_losing_race)

        order = await order_service.create_order(order_payload())

        assert "could not be deleted" in caplog.text
        assert order.order_number.startswith("ORD-")
        assert order.items[0]["product_id"] == "prod-10"


class TestOrderNumbers:
    async def test_unique_and_time_derived(self, order_service, cart_service):
        numbers = set()
        for n in range(3):
            await cart_service.create_cart(f"s-{n}")
            await cart_service.add_item(f"s-{n}", "prod-5", 1)
            order = await order_service.create_order(order_payload(f"s-{n}"))
            numbers.add(order.order_number)

        assert len(numbers) == 3
        assert all(re.fullmatch(r"ORD-\d{13}-[0-9A-F]{6}", n) for n in numbers)

    def test_generated_from_clock(self):
        from datetime import datetime, timezone

        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert generate_order_number(now).startswith("ORD-1704067200000-")


class TestStatusMachine:
    async def test_get_order(self, order_service, filled_cart):
        order = await order_service.create_order(order_payload())
        fetched = await order_service.get_order(order.order_number)
        assert fetched.order_number == order.order_number

    async def test_get_unknown_order(self, order_service):
        with pytest.raises(NotFoundError):
            await order_service.get_order("ORD-0")

    async def test_paid_advances_pending(self, order_service, filled_cart):
        order = await order_service.create_order(order_payload())

        order = await order_service.update_payment_status(order.order_number, "paid")

        assert order.payment_status == "paid"
        assert order.status == "processing"

    async def test_cancel_paid_resets_payment(self, order_service, filled_cart):
        order = await order_service.create_order(order_payload())
        await order_service.update_payment_status(order.order_number, PaymentStatus.PAID)

        order = await order_service.update_status(order.order_number, OrderStatus.CANCELLED)

        assert order.status == "cancelled"
        assert order.payment_status == "pending"

    async def test_plain_status_change(self, order_service, filled_cart):
        order = await order_service.create_order(order_payload())
        order = await order_service.update_status(order.order_number, "shipped")

        assert order.status == "shipped"
        assert order.payment_status == "pending"

    async def test_paid_on_shipped_order_keeps_status(self, order_service, filled_cart):
        order = await order_service.create_order(order_payload())
        await order_service.update_status(order.order_number, "shipped")

        order = await order_service.update_payment_status(order.order_number, "paid")
        assert order.status == "shipped"

    async def test_invalid_status(self, order_service, filled_cart):
        order = await order_service.create_order(order_payload())
        with pytest.raises(ValidationError):
            await order_service.update_status(order.order_number, "lost")

    async def test_invalid_payment_status(self, order_service, filled_cart):
        order = await order_service.create_order(order_payload())
        with pytest.raises(ValidationError):
            await order_service.update_payment_status(order.order_number, "maybe")

    async def test_unknown_order(self, order_service):
        with pytest.raises(NotFoundError):
            await order_service.update_status("ORD-0", "shipped")

    async def test_status_change_is_persisted(self, order_service, filled_cart, database):
        order = await order_service.create_order(order_payload())
        await order_service.update_payment_status(order.order_number, "refund_pending")

        async with database.session() as s:
            stored = await OrderRepo(s).get_order(order.order_number)
        assert stored.payment_status == "refund_pending"
        assert stored.status == "pending"
