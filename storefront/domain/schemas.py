# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain.models import DiscountType, OrderStatus


# --- cart --------------------------------------------------------------------


class ItemIn(BaseModel):
    """Adding a product to the cart."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)


class ItemQuantityIn(BaseModel):
    """Setting a line's quantity; 0 removes the line."""

    quantity: int = Field(..., ge=0)


class ApplyCouponIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)


class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    sku: str
    price: Decimal
    quantity: int
    line_total: Decimal


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    items: List[CartItemOut]
    subtotal: Decimal
    discount: Decimal
    grand_total: Decimal
    applied_coupon: Optional[str] = None


# --- orders ------------------------------------------------------------------


class CheckoutIn(BaseModel):
    shipping_address_id: int = Field(..., gt=0)


class ConfirmPaymentIn(BaseModel):
    payment_method: str = Field(..., min_length=1, max_length=50)


class ShipOrderIn(BaseModel):
    tracking_number: str = Field(..., min_length=1, max_length=50)


class PaymentWebhookIn(BaseModel):
    """Payload posted by the payment gateway."""

    order_id: int = Field(..., gt=0)
    status: Literal["success", "failed"]
    payment_method: str = Field("", max_length=50)


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    sku: str
    quantity: int
    price: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    user_id: int
    status: OrderStatus
    items: List[OrderItemOut]
    subtotal: Decimal
    discount: Decimal
    total_price: Decimal
    applied_coupon_code: Optional[str] = None
    shipping_address_id: int
    payment_method: Optional[str] = None
    tracking_number: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# --- catalog & coupons (admin) -----------------------------------------------


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., ge=0, decimal_places=2)
    quantity: int = Field(0, ge=0)
    description: str = ""


class ProductOut(BaseModel):
    id: int
    name: str
    sku: str
    price: Decimal
    quantity: int
    description: str

    model_config = ConfigDict(from_attributes=True)


class ProductPage(BaseModel):
    items: List[ProductOut]
    total: int
    offset: int
    limit: int


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0)
    expiry_date: datetime
    usage_limit: int = Field(1, ge=0)
    is_active: bool = True


class CouponOut(BaseModel):
    id: int
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    expiry_date: datetime
    usage_limit: int
    usage_count: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
