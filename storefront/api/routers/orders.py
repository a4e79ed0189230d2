# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends, Request

from storefront.api.deps import get_order_service
from storefront.api.responses import envelope
from storefront.domain.schemas import OrderCreate, OrderOut, OrderStatusIn, PaymentStatusIn
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", status_code=201)
async def create_order(request: Request, payload: OrderCreate, svc: OrderService = Depends(get_order_service)):
    """
    Creates an order from the session's cart.
    The cart is deleted once the order is stored.
    """
    order = await svc.create_order(payload)
    return envelope(request, OrderOut.model_validate(order), status_code=201)


@router.get("/{order_number}")
async def get_order(request: Request, order_number: str, svc: OrderService = Depends(get_order_service)):
    order = await svc.get_order(order_number)
    return envelope(request, OrderOut.model_validate(order))


@router.put("/{order_number}/status")
async def update_status(
    request: Request,
    order_number: str,
    payload: OrderStatusIn,
    svc: OrderService = Depends(get_order_service),
):
    order = await svc.update_status(order_number, payload.status)
    return envelope(request, OrderOut.model_validate(order))


@router.put("/{order_number}/payment-status")
async def update_payment_status(
    request: Request,
    order_number: str,
    payload: PaymentStatusIn,
    svc: OrderService = Depends(get_order_service),
):
    order = await svc.update_payment_status(order_number, payload.payment_status)
    return envelope(request, OrderOut.model_validate(order))
