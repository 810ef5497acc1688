# storefront/services/cart_service.py
from datetime import datetime
from typing import Callable

from storefront.domain.errors import CartItemNotFound, InvalidQuantity, OutOfStock, ProductNotFound
from storefront.domain.models import Cart, utcnow
from storefront.domain.schemas import CartItemOut, CartOut
from storefront.repos.base import Repositories
from storefront.repos.unit_of_work import UnitOfWork
from storefront.services.coupon_validator import ZERO, CouponValidator, compute_totals
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def build_cart_view(cart: Cart) -> CartOut:
    items = [
        CartItemOut(
            id=i.id,
            product_id=i.product_id,
            name=i.product.name if i.product else "",
            sku=i.product.sku if i.product else "",
            price=i.product.price if i.product else ZERO,
            quantity=i.quantity,
            line_total=i.line_total,
        )
        for i in cart.items
    ]
    subtotal = sum((i.line_total for i in items), ZERO)

    coupon = cart.coupon if cart.coupon is not None and cart.coupon.deleted_at is None else None
    discount = CouponValidator.discount_for(coupon, subtotal) if coupon else ZERO
    totals = compute_totals(subtotal, discount)

    return CartOut(
        cart_id=cart.id,
        user_id=cart.user_id,
        items=items,
        subtotal=totals.subtotal,
        discount=totals.discount,
        grand_total=totals.grand_total,
        applied_coupon=coupon.code if coupon else None,
    )


class CartService:
    """
    Use cases for the per-user cart.
    Each command runs in its own unit of work and returns the refreshed cart.
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utcnow):
        self.uow = uow
        self.clock = clock

    # query
    def get_cart(self, user_id: int) -> CartOut:
        # get-or-create writes on first access, hence a full scope
        cart = self.uow.execute(lambda repos: repos.carts.get_or_create(user_id))
        return build_cart_view(cart)

    # commands
    def add_item(self, user_id: int, product_id: int, quantity: int) -> CartOut:
        if quantity <= 0:
            raise InvalidQuantity(quantity)

        def _add(repos: Repositories) -> Cart:
            product = repos.products.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)

            cart = repos.carts.get_or_create(user_id)
            existing = next((i for i in cart.items if i.product_id == product_id), None)
            wanted = quantity + (existing.quantity if existing else 0)
            # advisory check; checkout reserves against the locked row
            if wanted > product.quantity:
                raise OutOfStock(product.name, product.quantity, wanted)

            repos.carts.add_item(cart.id, product_id, quantity)
            return repos.carts.get_by_user(user_id)

        cart = self.uow.execute(_add)
        logger.info(f"User {user_id} added {quantity} x product {product_id} to cart {cart.id}")
        return build_cart_view(cart)

    def update_item(self, user_id: int, item_id: int, quantity: int) -> CartOut:
        """Sets the quantity of a line directly; 0 removes it."""
        if quantity < 0:
            raise InvalidQuantity(quantity)

        def _update(repos: Repositories) -> Cart:
            cart = repos.carts.get_or_create(user_id)
            item = cart.find_item(item_id)
            if item is None:
                raise CartItemNotFound(item_id)

            if quantity > 0 and item.product is not None and quantity > item.product.quantity:
                raise OutOfStock(item.product.name, item.product.quantity, quantity)

            repos.carts.update_item_quantity(item_id, quantity)
            return repos.carts.get_by_user(user_id)

        cart = self.uow.execute(_update)
        logger.info(f"User {user_id} set cart item {item_id} quantity to {quantity}")
        return build_cart_view(cart)

    def remove_item(self, user_id: int, item_id: int) -> CartOut:
        def _remove(repos: Repositories) -> Cart:
            cart = repos.carts.get_or_create(user_id)
            if cart.find_item(item_id) is None:
                raise CartItemNotFound(item_id)
            repos.carts.remove_item(item_id)
            return repos.carts.get_by_user(user_id)

        cart = self.uow.execute(_remove)
        logger.info(f"User {user_id} removed cart item {item_id}")
        return build_cart_view(cart)

    def apply_coupon(self, user_id: int, code: str) -> CartOut:
        """Attaches the coupon, replacing whichever one was attached before."""

        def _apply(repos: Repositories) -> Cart:
            coupon = CouponValidator(repos.coupons, clock=self.clock).validate(code)
            cart = repos.carts.get_or_create(user_id)
            repos.carts.set_coupon(cart.id, coupon.id)
            return repos.carts.get_by_user(user_id)

        cart = self.uow.execute(_apply)
        logger.info(f"User {user_id} applied coupon '{code}' to cart {cart.id}")
        return build_cart_view(cart)

    def remove_coupon(self, user_id: int) -> CartOut:
        def _remove(repos: Repositories) -> Cart:
            cart = repos.carts.get_or_create(user_id)
            repos.carts.set_coupon(cart.id, None)
            return repos.carts.get_by_user(user_id)

        cart = self.uow.execute(_remove)
        logger.info(f"User {user_id} removed the coupon from cart {cart.id}")
        return build_cart_view(cart)
