# storefront/repos/base.py
"""
Repository contracts, one per aggregate.

Services are written against these protocols only. `SqlAlchemyUnitOfWork`
and `InMemoryUnitOfWork` each bind a full `Repositories` set to one
transaction scope.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Protocol

from storefront.domain.models import Cart, CartItem, Coupon, Order, OrderStatus, Product
from storefront.domain.patches import CouponPatch, OrderPatch, ProductPatch


@dataclass(frozen=True)
class ProductFilter:
    search: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    in_stock_only: bool = False
    offset: int = 0
    limit: int = 50


@dataclass(frozen=True)
class OrderFilter:
    user_id: Optional[int] = None
    status: Optional[OrderStatus] = None
    offset: int = 0
    limit: int = 50


class ProductRepository(Protocol):
    def get(self, product_id: int) -> Optional[Product]: ...

    def get_for_update(self, product_id: int) -> Optional[Product]:
        """Loads the product and locks its row until the scope ends."""
        ...

    def find(self, filters: ProductFilter) -> List[Product]: ...

    def count(self, filters: ProductFilter) -> int: ...

    def create(self, product: Product) -> Product: ...

    def update(self, product_id: int, patch: ProductPatch) -> Product: ...

    def soft_delete(self, product_id: int) -> None: ...


class CouponRepository(Protocol):
    def get(self, coupon_id: int) -> Optional[Coupon]: ...

    def get_for_update(self, coupon_id: int) -> Optional[Coupon]: ...

    def get_by_code(self, code: str) -> Optional[Coupon]: ...

    def list(self) -> List[Coupon]: ...

    def create(self, coupon: Coupon) -> Coupon: ...

    def update(self, coupon_id: int, patch: CouponPatch) -> Coupon: ...

    def soft_delete(self, coupon_id: int) -> None: ...


class CartRepository(Protocol):
    def get_or_create(self, user_id: int) -> Cart: ...

    def get_by_user(self, user_id: int) -> Optional[Cart]:
        """Cart with its items, each item's product and the applied coupon."""
        ...

    def add_item(self, cart_id: int, product_id: int, quantity: int) -> CartItem: ...

    def get_item(self, item_id: int) -> Optional[CartItem]: ...

    def update_item_quantity(self, item_id: int, quantity: int) -> None: ...

    def remove_item(self, item_id: int) -> None: ...

    def clear(self, cart_id: int) -> None: ...

    def set_coupon(self, cart_id: int, coupon_id: Optional[int]) -> None: ...


class OrderRepository(Protocol):
    def create(self, order: Order) -> Order: ...

    def get(self, order_id: int) -> Optional[Order]: ...

    def get_for_update(self, order_id: int) -> Optional[Order]: ...

    def find(self, filters: OrderFilter) -> List[Order]: ...

    def update(self, order_id: int, patch: OrderPatch) -> Order: ...


@dataclass(frozen=True)
class Repositories:
    carts: CartRepository
    products: ProductRepository
    coupons: CouponRepository
    orders: OrderRepository
