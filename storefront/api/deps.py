# storefront/api/deps.py
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.data.database import get_db
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService


def get_cart_service(request: Request, db: AsyncSession = Depends(get_db)) -> CartService:
    return CartService(db=db, products=request.app.state.products)


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db)
