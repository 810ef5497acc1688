# storefront/repos/cart_repo.py
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import CartItemNotFound
from storefront.domain.models import Cart, CartItem
from storefront.repos.mappers import to_cart, to_cart_item
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def _find(self, user_id: int) -> Optional[CartModel]:
        stmt = (
            select(CartModel)
            .where(CartModel.user_id == user_id)
            .options(
                selectinload(CartModel.items).selectinload(CartItemModel.product),
                selectinload(CartModel.coupon),
            )
            # collections loaded earlier in this session may be stale
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_user(self, user_id: int) -> Optional[Cart]:
        cart = self._find(user_id)
        return to_cart(cart) if cart else None

    def get_or_create(self, user_id: int) -> Cart:
        cart = self._find(user_id)
        if cart is None:
            try:
                with self.db.begin_nested():
                    self.db.add(CartModel(user_id=user_id))
                    self.db.flush()
                logger.info(f"Created cart for user {user_id}")
            except IntegrityError:
                # a concurrent first access created it; the unique index on user_id kept us at one
                logger.info(f"Cart for user {user_id} was created concurrently, reusing it")
            cart = self._find(user_id)
        return to_cart(cart)

    def add_item(self, cart_id: int, product_id: int, quantity: int) -> CartItem:
        item = self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

        if item:
            item.quantity += quantity
        else:
            item = CartItemModel(cart_id=cart_id, product_id=product_id, quantity=quantity)
            self.db.add(item)

        self.db.flush()
        return to_cart_item(item, with_product=False)

    def get_item(self, item_id: int) -> Optional[CartItem]:
        item = self.db.get(CartItemModel, item_id)
        return to_cart_item(item, with_product=False) if item else None

    def update_item_quantity(self, item_id: int, quantity: int) -> None:
        if quantity == 0:
            self.remove_item(item_id)
            return

        item = self.db.get(CartItemModel, item_id)
        if item is None:
            raise CartItemNotFound(item_id)
        item.quantity = quantity
        self.db.flush()

    def remove_item(self, item_id: int) -> None:
        item = self.db.get(CartItemModel, item_id)
        if item is None:
            raise CartItemNotFound(item_id)
        self.db.delete(item)
        self.db.flush()

    def clear(self, cart_id: int) -> None:
        self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session="fetch")
        )

    def set_coupon(self, cart_id: int, coupon_id: Optional[int]) -> None:
        cart = self.db.get(CartModel, cart_id)
        cart.coupon_id = coupon_id
        self.db.flush()
