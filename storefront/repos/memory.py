# storefront/repos/memory.py
"""
In-memory repositories satisfying the same contracts as the SQLAlchemy ones.

All records are frozen dataclasses, so a shallow copy of each table is a
complete snapshot. `InMemoryUnitOfWork` runs each scope on such a copy and
publishes it back only on commit.
"""
from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, List, Optional

from storefront.domain.errors import (
    CartItemNotFound,
    CouponCodeExists,
    CouponNotFound,
    OrderNotFound,
    ProductNotFound,
    ProductSkuExists,
)
from storefront.domain.models import Cart, CartItem, Coupon, Order, Product, utcnow
from storefront.domain.patches import CouponPatch, OrderPatch, ProductPatch
from storefront.repos.base import OrderFilter, ProductFilter

TABLES = ("products", "coupons", "carts", "cart_items", "orders")


class InMemoryStore:
    def __init__(self):
        self.products: Dict[int, Product] = {}
        self.coupons: Dict[int, Coupon] = {}
        self.carts: Dict[int, Cart] = {}  # items and coupon are joined on read
        self.cart_items: Dict[int, CartItem] = {}
        self.orders: Dict[int, Order] = {}
        self.sequences: Dict[str, int] = {name: 0 for name in TABLES + ("order_items",)}
        # held for the whole of a write scope
        self.lock = threading.RLock()
        # held only while tables are copied out or published
        self._publish_lock = threading.Lock()

    def next_id(self, table: str) -> int:
        self.sequences[table] += 1
        return self.sequences[table]

    def copy(self) -> "InMemoryStore":
        """A private working copy of the committed tables."""
        clone = InMemoryStore()
        with self._publish_lock:
            for name in TABLES:
                setattr(clone, name, dict(getattr(self, name)))
            clone.sequences = dict(self.sequences)
        return clone

    def publish(self, working: "InMemoryStore") -> None:
        """Makes a working copy the committed state."""
        with self._publish_lock:
            for name in TABLES:
                setattr(self, name, getattr(working, name))
            self.sequences = working.sequences


class InMemoryProductRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _live(self) -> List[Product]:
        return [p for p in list(self.store.products.values()) if p.deleted_at is None]

    def get(self, product_id: int) -> Optional[Product]:
        product = self.store.products.get(product_id)
        return product if product and product.deleted_at is None else None

    def get_for_update(self, product_id: int) -> Optional[Product]:
        # scopes are already serialized by the store lock
        return self.get(product_id)

    def _matching(self, filters: ProductFilter) -> List[Product]:
        products = self._live()
        if filters.search:
            needle = filters.search.strip().lower()
            products = [p for p in products if needle in p.name.lower() or needle in p.sku.lower()]
        if filters.min_price is not None:
            products = [p for p in products if p.price >= filters.min_price]
        if filters.max_price is not None:
            products = [p for p in products if p.price <= filters.max_price]
        if filters.in_stock_only:
            products = [p for p in products if p.quantity > 0]
        return sorted(products, key=lambda p: p.id)

    def find(self, filters: ProductFilter) -> List[Product]:
        return self._matching(filters)[filters.offset : filters.offset + filters.limit]

    def count(self, filters: ProductFilter) -> int:
        return len(self._matching(filters))

    def _check_sku(self, sku: str, own_id: Optional[int] = None) -> None:
        # the SQL unique index covers soft-deleted rows as well
        if any(p.sku == sku and p.id != own_id for p in self.store.products.values()):
            raise ProductSkuExists(sku)

    def create(self, product: Product) -> Product:
        self._check_sku(product.sku)
        created = replace(product, id=self.store.next_id("products"))
        self.store.products[created.id] = created
        return created

    def update(self, product_id: int, patch: ProductPatch) -> Product:
        product = self.get(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        if patch.sku is not None:
            self._check_sku(patch.sku, own_id=product_id)
        updated = replace(product, **patch.changes())
        self.store.products[product_id] = updated
        return updated

    def soft_delete(self, product_id: int) -> None:
        product = self.get(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        self.store.products[product_id] = replace(product, deleted_at=utcnow())


class InMemoryCouponRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get(self, coupon_id: int) -> Optional[Coupon]:
        coupon = self.store.coupons.get(coupon_id)
        return coupon if coupon and coupon.deleted_at is None else None

    def get_for_update(self, coupon_id: int) -> Optional[Coupon]:
        return self.get(coupon_id)

    def get_by_code(self, code: str) -> Optional[Coupon]:
        return next(
            (c for c in list(self.store.coupons.values()) if c.code == code and c.deleted_at is None),
            None,
        )

    def list(self) -> List[Coupon]:
        return sorted(
            (c for c in list(self.store.coupons.values()) if c.deleted_at is None),
            key=lambda c: c.id,
        )

    def _check_code(self, code: str, own_id: Optional[int] = None) -> None:
        if any(c.code == code and c.id != own_id for c in self.store.coupons.values()):
            raise CouponCodeExists(code)

    def create(self, coupon: Coupon) -> Coupon:
        coupon.ensure_usage_within_limit()
        self._check_code(coupon.code)
        created = replace(coupon, id=self.store.next_id("coupons"))
        self.store.coupons[created.id] = created
        return created

    def update(self, coupon_id: int, patch: CouponPatch) -> Coupon:
        coupon = self.get(coupon_id)
        if coupon is None:
            raise CouponNotFound(str(coupon_id))
        if patch.code is not None:
            self._check_code(patch.code, own_id=coupon_id)
        updated = replace(coupon, **patch.changes())
        updated.ensure_usage_within_limit()
        self.store.coupons[coupon_id] = updated
        return updated

    def soft_delete(self, coupon_id: int) -> None:
        coupon = self.get(coupon_id)
        if coupon is None:
            raise CouponNotFound(str(coupon_id))
        self.store.coupons[coupon_id] = replace(coupon, deleted_at=utcnow())


class InMemoryCartRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _assemble(self, cart: Cart) -> Cart:
        items = sorted(
            (i for i in list(self.store.cart_items.values()) if i.cart_id == cart.id),
            key=lambda i: i.id,
        )
        return replace(
            cart,
            items=tuple(replace(i, product=self.store.products.get(i.product_id)) for i in items),
            coupon=self.store.coupons.get(cart.coupon_id) if cart.coupon_id is not None else None,
        )

    def _row(self, user_id: int) -> Optional[Cart]:
        return next((c for c in list(self.store.carts.values()) if c.user_id == user_id), None)

    def get_by_user(self, user_id: int) -> Optional[Cart]:
        cart = self._row(user_id)
        return self._assemble(cart) if cart else None

    def get_or_create(self, user_id: int) -> Cart:
        cart = self._row(user_id)
        if cart is None:
            cart = Cart(id=self.store.next_id("carts"), user_id=user_id)
            self.store.carts[cart.id] = cart
        return self._assemble(cart)

    def add_item(self, cart_id: int, product_id: int, quantity: int) -> CartItem:
        existing = next(
            (
                i
                for i in self.store.cart_items.values()
                if i.cart_id == cart_id and i.product_id == product_id
            ),
            None,
        )
        if existing:
            item = replace(existing, quantity=existing.quantity + quantity)
        else:
            item = CartItem(
                id=self.store.next_id("cart_items"),
                cart_id=cart_id,
                product_id=product_id,
                quantity=quantity,
            )
        self.store.cart_items[item.id] = item
        return item

    def get_item(self, item_id: int) -> Optional[CartItem]:
        return self.store.cart_items.get(item_id)

    def update_item_quantity(self, item_id: int, quantity: int) -> None:
        if quantity == 0:
            self.remove_item(item_id)
            return
        item = self.store.cart_items.get(item_id)
        if item is None:
            raise CartItemNotFound(item_id)
        self.store.cart_items[item_id] = replace(item, quantity=quantity)

    def remove_item(self, item_id: int) -> None:
        if self.store.cart_items.pop(item_id, None) is None:
            raise CartItemNotFound(item_id)

    def clear(self, cart_id: int) -> None:
        for item_id in [i.id for i in self.store.cart_items.values() if i.cart_id == cart_id]:
            del self.store.cart_items[item_id]

    def set_coupon(self, cart_id: int, coupon_id: Optional[int]) -> None:
        self.store.carts[cart_id] = replace(self.store.carts[cart_id], coupon_id=coupon_id)


class InMemoryOrderRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def create(self, order: Order) -> Order:
        order_id = self.store.next_id("orders")
        items = tuple(
            replace(i, id=self.store.next_id("order_items"), order_id=order_id) for i in order.items
        )
        created = replace(order, id=order_id, items=items)
        self.store.orders[order_id] = created
        return created

    def get(self, order_id: int) -> Optional[Order]:
        return self.store.orders.get(order_id)

    def get_for_update(self, order_id: int) -> Optional[Order]:
        return self.get(order_id)

    def find(self, filters: OrderFilter) -> List[Order]:
        orders = list(self.store.orders.values())
        if filters.user_id is not None:
            orders = [o for o in orders if o.user_id == filters.user_id]
        if filters.status is not None:
            orders = [o for o in orders if o.status == filters.status]
        orders.sort(key=lambda o: (o.created_at, o.id), reverse=True)
        return orders[filters.offset : filters.offset + filters.limit]

    def update(self, order_id: int, patch: OrderPatch) -> Order:
        order = self.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        updated = replace(order, updated_at=utcnow(), **patch.changes())
        self.store.orders[order_id] = updated
        return updated
