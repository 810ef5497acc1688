# storefront/api/routers/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from storefront.api.deps import get_order_service, get_principal, verify_webhook_secret
from storefront.domain.models import OrderStatus, Principal
from storefront.domain.schemas import (
    CheckoutIn,
    ConfirmPaymentIn,
    OrderOut,
    PaymentWebhookIn,
    ShipOrderIn,
)
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    """
    Places an order from the caller's cart.
    Stock, coupon and cart are updated atomically; the notification is sent afterwards.
    """
    order = svc.checkout(principal.user_id, payload.shipping_address_id)
    return OrderOut.model_validate(order)


@router.get("", response_model=List[OrderOut])
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    orders = svc.list_orders(principal, status=status, offset=offset, limit=limit)
    return [OrderOut.model_validate(o) for o in orders]


@router.post(
    "/webhooks/payment",
    response_model=OrderOut,
    dependencies=[Depends(verify_webhook_secret)],
)
def payment_webhook(
    payload: PaymentWebhookIn,
    svc: OrderService = Depends(get_order_service),
):
    order = svc.handle_payment_webhook(
        payload.order_id,
        succeeded=payload.status == "success",
        payment_method=payload.payment_method,
    )
    return OrderOut.model_validate(order)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    return OrderOut.model_validate(svc.get_order(principal, order_id))


@router.post("/{order_id}/confirm-payment", response_model=OrderOut)
def confirm_payment(
    order_id: int,
    payload: ConfirmPaymentIn,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    return OrderOut.model_validate(svc.confirm_payment(principal, order_id, payload.payment_method))


@router.post("/{order_id}/ship", response_model=OrderOut)
def ship_order(
    order_id: int,
    payload: ShipOrderIn,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    return OrderOut.model_validate(svc.ship_order(principal, order_id, payload.tracking_number))


@router.post("/{order_id}/complete", response_model=OrderOut)
def complete_order(
    order_id: int,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    return OrderOut.model_validate(svc.complete_order(principal, order_id))


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    return OrderOut.model_validate(svc.cancel_order(principal, order_id))
