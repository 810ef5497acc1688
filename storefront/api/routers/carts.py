# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_cart_service, get_principal
from storefront.domain.models import Principal
from storefront.domain.schemas import ApplyCouponIn, CartOut, ItemIn, ItemQuantityIn
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    """Returns the caller's cart, creating an empty one on first access."""
    return svc.get_cart(principal.user_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    return svc.add_item(principal.user_id, payload.product_id, payload.quantity)


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: ItemQuantityIn,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    return svc.update_item(principal.user_id, item_id, payload.quantity)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove_item(principal.user_id, item_id)


@router.post("/coupon", response_model=CartOut)
def apply_coupon(
    payload: ApplyCouponIn,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    return svc.apply_coupon(principal.user_id, payload.code)


@router.delete("/coupon", response_model=CartOut)
def remove_coupon(
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove_coupon(principal.user_id)
