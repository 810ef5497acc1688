# storefront/services/order_service.py
from datetime import datetime
from typing import Callable, List, Optional

from storefront.domain.errors import (
    CartIsEmpty,
    CouponNotFound,
    InvalidOrderStatusTransition,
    OrderAccessDenied,
    OrderNotFound,
)
from storefront.domain.models import (
    Cart,
    Order,
    OrderItem,
    OrderStatus,
    Principal,
    utcnow,
)
from storefront.domain.patches import CouponPatch, OrderPatch
from storefront.repos.base import OrderFilter, Repositories
from storefront.repos.unit_of_work import UnitOfWork
from storefront.services.coupon_validator import ZERO, CouponValidator, compute_totals
from storefront.services.notification_service import NotificationService
from storefront.services.stock_ledger import StockLedger
from storefront.utils.logging import get_logger
from storefront.utils.settings import Settings

logger = get_logger(__name__)


class OrderService:
    """
    Order domain: checkout and the status lifecycle.

    Every command is one unit of work. Notifications go out only after the
    scope has committed, so a failed enqueue never touches stored state.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        notifier: Optional[NotificationService] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.notifier = notifier
        self.settings = settings or Settings()
        self.clock = clock

    # --- checkout ------------------------------------------------------------

    def checkout(self, user_id: int, shipping_address_id: int) -> Order:
        """
        Use Case: turning the user's cart into an order.

        1. Loads the cart; an empty one is rejected
        2. Reserves stock for each line, capturing its price, name and sku
        3. Re-validates the attached coupon and computes the totals
        4. Stores the pending order and empties the cart
        """
        order = self.uow.execute(lambda repos: self._checkout(repos, user_id, shipping_address_id))

        logger.info(
            f"Order {order.id} placed by user {user_id}: "
            f"subtotal={order.subtotal} discount={order.discount} total={order.total_price}"
        )
        self._notify(order)
        return order

    def _checkout(self, repos: Repositories, user_id: int, shipping_address_id: int) -> Order:
        cart = repos.carts.get_or_create(user_id)
        if cart.is_empty:
            logger.warning(f"User {user_id} tried to check out an empty cart")
            raise CartIsEmpty()

        ledger = StockLedger(repos.products)
        # rows are locked in product id order so concurrent checkouts cannot deadlock
        reserved = {}
        for line in sorted(cart.items, key=lambda i: i.product_id):
            reserved[line.product_id] = ledger.reserve(line.product_id, line.quantity)

        items = [
            OrderItem(
                id=None,
                order_id=None,
                product_id=line.product_id,
                quantity=line.quantity,
                price=reserved[line.product_id].price,
                product_name=reserved[line.product_id].name,
                sku=reserved[line.product_id].sku,
            )
            for line in cart.items
        ]

        subtotal = sum((i.line_total for i in items), ZERO)
        discount, coupon_code = self._discount(repos, cart, subtotal)
        totals = compute_totals(subtotal, discount)

        order = repos.orders.create(
            Order(
                id=None,
                user_id=user_id,
                items=tuple(items),
                subtotal=totals.subtotal,
                discount=totals.discount,
                total_price=totals.grand_total,
                shipping_address_id=shipping_address_id,
                status=OrderStatus.PENDING,
                applied_coupon_code=coupon_code,
                created_at=self.clock(),
            )
        )

        repos.carts.clear(cart.id)
        repos.carts.set_coupon(cart.id, None)
        return order

    def _discount(self, repos: Repositories, cart: Cart, subtotal):
        if cart.coupon_id is None:
            return ZERO, None

        coupon = repos.coupons.get_for_update(cart.coupon_id)
        if coupon is None:
            # soft-deleted after it was applied
            raise CouponNotFound(cart.coupon.code if cart.coupon else str(cart.coupon_id))

        validator = CouponValidator(repos.coupons, clock=self.clock)
        validator.check(coupon)

        if self.settings.count_coupon_usage:
            repos.coupons.update(coupon.id, CouponPatch(usage_count=coupon.usage_count + 1))

        return validator.discount_for(coupon, subtotal), coupon.code

    # --- lifecycle -----------------------------------------------------------

    def confirm_payment(self, principal: Principal, order_id: int, payment_method: str) -> Order:
        self._require_admin(principal, order_id)
        return self._transition(order_id, OrderStatus.PROCESSING, payment_method=payment_method)

    def ship_order(self, principal: Principal, order_id: int, tracking_number: str) -> Order:
        self._require_admin(principal, order_id)
        return self._transition(order_id, OrderStatus.SHIPPED, tracking_number=tracking_number)

    def complete_order(self, principal: Principal, order_id: int) -> Order:
        self._require_admin(principal, order_id)
        return self._transition(order_id, OrderStatus.COMPLETED)

    def cancel_order(self, principal: Principal, order_id: int) -> Order:
        """
        Cancels a pending or processing order and puts its items back on the
        shelf. Owners may cancel their own orders, admins any order.
        """

        def _cancel(repos: Repositories) -> Order:
            order = self._load_for_update(repos, order_id)
            if not (principal.is_admin or order.is_owned_by(principal.user_id)):
                raise OrderAccessDenied(order_id)
            return self._cancel_and_restock(repos, order)

        order = self.uow.execute(_cancel)
        logger.info(f"Order {order_id} cancelled by user {principal.user_id}")
        self._notify(order)
        return order

    def handle_payment_webhook(
        self, order_id: int, succeeded: bool, payment_method: Optional[str] = None
    ) -> Order:
        """Applies the payment gateway's verdict to a pending order."""
        if succeeded:
            changes = {"payment_method": payment_method} if payment_method else {}
            order = self._transition(order_id, OrderStatus.PROCESSING, **changes)
        else:

            def _fail(repos: Repositories) -> Order:
                order = self._load_for_update(repos, order_id)
                # a paid order is never cancelled by a late failure notice
                if order.status != OrderStatus.PENDING:
                    raise InvalidOrderStatusTransition(
                        order_id, OrderStatus(order.status).value, OrderStatus.CANCELLED.value
                    )
                return self._cancel_and_restock(repos, order)

            order = self.uow.execute(_fail)
            self._notify(order)

        logger.info(f"Payment webhook for order {order_id}: {'success' if succeeded else 'failed'}")
        return order

    # --- queries -------------------------------------------------------------

    def get_order(self, principal: Principal, order_id: int) -> Order:
        with self.uow.reader() as repos:
            order = repos.orders.get(order_id)

        if order is None:
            raise OrderNotFound(order_id)
        if not (principal.is_admin or order.is_owned_by(principal.user_id)):
            logger.warning(f"User {principal.user_id} denied access to order {order_id}")
            raise OrderAccessDenied(order_id)
        return order

    def list_orders(
        self,
        principal: Principal,
        status: Optional[OrderStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> List[Order]:
        filters = OrderFilter(
            user_id=None if principal.is_admin else principal.user_id,
            status=status,
            offset=offset,
            limit=limit,
        )
        with self.uow.reader() as repos:
            return repos.orders.find(filters)

    # --- helpers -------------------------------------------------------------

    @staticmethod
    def _require_admin(principal: Principal, order_id: int) -> None:
        if not principal.is_admin:
            logger.warning(f"User {principal.user_id} is not allowed to change the status of order {order_id}")
            raise OrderAccessDenied(order_id, "only administrators can change the order status")

    @staticmethod
    def _load_for_update(repos: Repositories, order_id: int) -> Order:
        order = repos.orders.get_for_update(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    @staticmethod
    def _cancel_and_restock(repos: Repositories, order: Order) -> Order:
        order.ensure_can_move_to(OrderStatus.CANCELLED)
        ledger = StockLedger(repos.products)
        for item in order.items:
            ledger.release(item.product_id, item.quantity)
        return repos.orders.update(order.id, OrderPatch(status=OrderStatus.CANCELLED))

    def _transition(self, order_id: int, target: OrderStatus, **changes) -> Order:
        def _move(repos: Repositories) -> Order:
            order = self._load_for_update(repos, order_id)
            order.ensure_can_move_to(target)
            return repos.orders.update(order_id, OrderPatch(status=target, **changes))

        order = self.uow.execute(_move)
        logger.info(f"Order {order_id} moved to '{target.value}'")
        self._notify(order)
        return order

    def _notify(self, order: Order) -> None:
        if self.notifier is not None:
            self.notifier.send_order_notification(order.user_id, order.id, order.status.value)
