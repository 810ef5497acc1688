# storefront/api/deps.py
import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from storefront.domain.models import Principal, Role
from storefront.repos.unit_of_work import UnitOfWork
from storefront.services.cart_service import CartService
from storefront.services.coupon_service import CouponService
from storefront.services.order_service import OrderService
from storefront.services.product_service import ProductService


def get_uow(request: Request) -> UnitOfWork:
    return request.app.state.uow


def get_principal(
    x_user_id: Optional[int] = Header(None, gt=0),
    x_user_role: Role = Header(Role.CUSTOMER),
) -> Principal:
    """
    Identity as passed on by the gateway in front of this service;
    tokens are verified there, not here.
    """
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="missing X-User-Id header")
    return Principal(user_id=x_user_id, role=x_user_role)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="admin role required")
    return principal


def verify_webhook_secret(
    request: Request,
    x_webhook_secret: Optional[str] = Header(None),
) -> None:
    """The payment gateway authenticates with the shared secret from settings."""
    expected = request.app.state.settings.payment_webhook_secret
    if not expected or x_webhook_secret is None:
        raise HTTPException(status_code=401, detail="webhook secret required")
    if not hmac.compare_digest(x_webhook_secret.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="invalid webhook secret")


def get_cart_service(uow: UnitOfWork = Depends(get_uow)) -> CartService:
    return CartService(uow)


def get_order_service(request: Request, uow: UnitOfWork = Depends(get_uow)) -> OrderService:
    return OrderService(
        uow,
        notifier=request.app.state.notifier,
        settings=request.app.state.settings,
    )


def get_product_service(uow: UnitOfWork = Depends(get_uow)) -> ProductService:
    return ProductService(uow)


def get_coupon_service(uow: UnitOfWork = Depends(get_uow)) -> CouponService:
    return CouponService(uow)
