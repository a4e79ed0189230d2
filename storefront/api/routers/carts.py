# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, Request

from storefront.api.deps import get_cart_service
from storefront.api.responses import envelope
from storefront.domain.schemas import (
    CartOut,
    CreateCartIn,
    ItemIn,
    ItemQuantityIn,
    MergeCartsIn,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.post("", status_code=201)
async def create_cart(request: Request, payload: CreateCartIn, svc: CartService = Depends(get_cart_service)):
    cart = await svc.create_cart(payload.session_id)
    return envelope(request, CartOut.model_validate(cart), status_code=201)


@router.post("/merge")
async def merge_carts(request: Request, payload: MergeCartsIn, svc: CartService = Depends(get_cart_service)):
    """Guest cart -> logged-in cart. Limits clamp instead of failing."""
    cart = await svc.merge_carts(payload.source_session_id, payload.target_session_id)
    return envelope(request, CartOut.model_validate(cart))


@router.get("/{session_id}")
async def get_cart(request: Request, session_id: str, svc: CartService = Depends(get_cart_service)):
    cart = await svc.get_cart(session_id)
    return envelope(request, CartOut.model_validate(cart))


@router.post("/{session_id}/items")
async def add_item(
    request: Request,
    session_id: str,
    payload: ItemIn,
    svc: CartService = Depends(get_cart_service),
):
    cart = await svc.add_item(
        session_id=session_id,
        product_id=payload.product_id,
        quantity=payload.quantity,
        variant_id=payload.variant_id,
    )
    return envelope(request, CartOut.model_validate(cart))


@router.put("/{session_id}/items/{item_id}")
async def update_item(
    request: Request,
    session_id: str,
    item_id: str,
    payload: ItemQuantityIn,
    svc: CartService = Depends(get_cart_service),
):
    cart = await svc.update_item_quantity(session_id, item_id, payload.quantity)
    return envelope(request, CartOut.model_validate(cart))


@router.delete("/{session_id}/items/{item_id}")
async def remove_item(
    request: Request,
    session_id: str,
    item_id: str,
    svc: CartService = Depends(get_cart_service),
):
    cart = await svc.remove_item(session_id, item_id)
    return envelope(request, CartOut.model_validate(cart))


@router.delete("/{session_id}")
async def clear_cart(request: Request, session_id: str, svc: CartService = Depends(get_cart_service)):
    cart = await svc.clear_cart(session_id)
    return envelope(request, CartOut.model_validate(cart))


@router.post("/{session_id}/abandon")
async def abandon_cart(request: Request, session_id: str, svc: CartService = Depends(get_cart_service)):
    cart = await svc.abandon_cart(session_id)
    return envelope(request, CartOut.model_validate(cart))
