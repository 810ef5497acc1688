# storefront/domain/models.py
"""
Domain records passed between repositories and services.

They are frozen: a repository hands out snapshots, and every change goes back
through a repository call. Both storage implementations speak these types.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Tuple

from storefront.domain.errors import CouponUsageAboveLimit, InvalidOrderStatusTransition

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DiscountType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # terminal
    OrderStatus.CANCELLED: set(),  # terminal
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _VALID_TRANSITIONS[OrderStatus(current)]


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as supplied by the identity collaborator."""

    user_id: int
    role: Role = Role.CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class Product:
    id: Optional[int]
    name: str
    sku: str
    price: Decimal
    quantity: int
    description: str = ""
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Coupon:
    id: Optional[int]
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    expiry_date: datetime
    usage_limit: int = 1
    usage_count: int = 0
    is_active: bool = True
    deleted_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return not self.is_active or now > as_utc(self.expiry_date)

    @property
    def is_exhausted(self) -> bool:
        return self.usage_count >= self.usage_limit

    def ensure_usage_within_limit(self) -> None:
        if self.usage_count > self.usage_limit:
            raise CouponUsageAboveLimit(self.code, self.usage_count, self.usage_limit)


@dataclass(frozen=True)
class CartItem:
    id: Optional[int]
    cart_id: int
    product_id: int
    quantity: int
    product: Optional[Product] = None

    @property
    def line_total(self) -> Decimal:
        if self.product is None:
            return Decimal("0.00")
        return to_money(self.product.price * self.quantity)


@dataclass(frozen=True)
class Cart:
    id: Optional[int]
    user_id: int
    items: Tuple[CartItem, ...] = ()
    coupon_id: Optional[int] = None
    coupon: Optional[Coupon] = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_item(self, item_id: int) -> Optional[CartItem]:
        return next((i for i in self.items if i.id == item_id), None)


@dataclass(frozen=True)
class OrderItem:
    id: Optional[int]
    order_id: Optional[int]
    product_id: int
    quantity: int
    price: Decimal  # unit price at time of checkout
    product_name: str = ""
    sku: str = ""

    @property
    def line_total(self) -> Decimal:
        return to_money(self.price * self.quantity)


@dataclass(frozen=True)
class Order:
    id: Optional[int]
    user_id: int
    items: Tuple[OrderItem, ...]
    subtotal: Decimal
    discount: Decimal
    total_price: Decimal
    shipping_address_id: int
    status: OrderStatus = OrderStatus.PENDING
    applied_coupon_code: Optional[str] = None
    tracking_number: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def ensure_can_move_to(self, target: OrderStatus) -> None:
        if not can_transition(self.status, target):
            raise InvalidOrderStatusTransition(self.id, OrderStatus(self.status).value, target.value)

    def is_owned_by(self, user_id: int) -> bool:
        return self.user_id == user_id
