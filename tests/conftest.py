from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.api import create_app
from storefront.data.database import Database
from storefront.data.models import CartModel
from storefront.domain.schemas import InventoryInfo, ProductInfo
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService


def pytest_collection_modifyitems(config, items):
    """Mark tests based on their directory."""
    for item in items:
        test_path = str(Path(item.fspath))
        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)


class FakeProductDirectory:
    """In-memory stand-in for the product service."""

    def __init__(self):
        self.products: dict[str, ProductInfo] = {}

    def put(self, product_id, price, quantity=100, reserved=0, is_active=True):
        self.products[product_id] = ProductInfo(
            id=product_id,
            price=Decimal(str(price)),
            is_active=is_active,
            inventory=InventoryInfo(quantity=quantity, reserved=reserved),
        )
        return self.products[product_id]

    def drop(self, product_id):
        self.products.pop(product_id, None)

    async def get(self, product_id):
        return self.products.get(product_id)

    async def exists(self, product_id):
        return product_id in self.products


@pytest.fixture()
def products():
    directory = FakeProductDirectory()
    directory.put("prod-10", price="10.00")
    directory.put("prod-5", price="5.00")
    directory.put("prod-scarce", price="20.00", quantity=5, reserved=3)
    directory.put("prod-off", price="15.00", is_active=False)
    return directory


@pytest.fixture()
async def database():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = Database("sqlite+aiosqlite://", engine=engine)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture()
async def session(database):
    async with database.session() as s:
        yield s


@pytest.fixture()
def cart_service(session, products):
    return CartService(db=session, products=products)


@pytest.fixture()
def order_service(session):
    return OrderService(session)


@pytest.fixture()
async def client(database, products):
    app = create_app(database=database, products=products)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _age_cart(session, session_id, hours):
    """Push the session's newest cart ``hours`` into the past."""
    cart = (
        await session.execute(
            select(CartModel)
            .where(CartModel.session_id == session_id)
            .order_by(CartModel.id.desc())
            .limit(1)
        )
    ).scalar_one()
    cart.updated_at = datetime.now(timezone.utc) - timedelta(hours=hours)
    await session.commit()


@pytest.fixture()
def make_stale(session):
    """Ages a cart through the same session the services use."""

    async def _make_stale(session_id, hours=25):
        await _age_cart(session, session_id, hours)

    return _make_stale


@pytest.fixture()
def make_stale_stored(database):
    """Ages a cart in storage, for tests going through the HTTP app."""

    async def _make_stale(session_id, hours=25):
        async with database.session() as s:
            await _age_cart(s, session_id, hours)

    return _make_stale
