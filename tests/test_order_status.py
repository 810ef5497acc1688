import pytest

from storefront.domain.errors import (
    InvalidOrderStatusTransition,
    OrderAccessDenied,
    OrderNotFound,
)
from storefront.domain.models import OrderStatus, Principal, Role, can_transition
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService

ADMIN = Principal(user_id=100, role=Role.ADMIN)
OWNER = Principal(user_id=1)
STRANGER = Principal(user_id=2)


@pytest.fixture
def orders(uow, notifier):
    return OrderService(uow, notifier=notifier)


@pytest.fixture
def placed(uow, orders, make_product):
    """A pending order of 2 units placed by OWNER; stock left at 3."""
    product = make_product(quantity=5)
    CartService(uow).add_item(OWNER.user_id, product.id, 2)
    order = orders.checkout(OWNER.user_id, shipping_address_id=1)
    return order, product


@pytest.mark.parametrize(
    "current, target, allowed",
    [
        (OrderStatus.PENDING, OrderStatus.PROCESSING, True),
        (OrderStatus.PENDING, OrderStatus.CANCELLED, True),
        (OrderStatus.PENDING, OrderStatus.SHIPPED, False),
        (OrderStatus.PROCESSING, OrderStatus.SHIPPED, True),
        (OrderStatus.PROCESSING, OrderStatus.CANCELLED, True),
        (OrderStatus.SHIPPED, OrderStatus.COMPLETED, True),
        (OrderStatus.SHIPPED, OrderStatus.CANCELLED, False),
        (OrderStatus.COMPLETED, OrderStatus.CANCELLED, False),
        (OrderStatus.CANCELLED, OrderStatus.PROCESSING, False),
    ],
)
def test_state_machine(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_full_lifecycle(orders, placed, notifier):
    order, _ = placed

    paid = orders.confirm_payment(ADMIN, order.id, "card")
    assert paid.status == OrderStatus.PROCESSING
    assert paid.payment_method == "card"

    shipped = orders.ship_order(ADMIN, order.id, "TRACK-1")
    assert shipped.status == OrderStatus.SHIPPED
    assert shipped.tracking_number == "TRACK-1"

    done = orders.complete_order(ADMIN, order.id)
    assert done.status == OrderStatus.COMPLETED
    assert done.updated_at is not None

    assert [status for _, _, status in notifier.sent] == ["pending", "processing", "shipped", "completed"]


def test_pending_cannot_be_shipped(orders, placed):
    order, _ = placed

    with pytest.raises(InvalidOrderStatusTransition) as exc:
        orders.ship_order(ADMIN, order.id, "TRACK-1")

    assert exc.value.current == "pending"
    assert exc.value.target == "shipped"
    assert orders.get_order(ADMIN, order.id).status == OrderStatus.PENDING


def test_confirm_payment_twice_is_rejected(orders, placed):
    order, _ = placed
    orders.confirm_payment(ADMIN, order.id, "card")

    with pytest.raises(InvalidOrderStatusTransition):
        orders.confirm_payment(ADMIN, order.id, "card")


def test_customers_cannot_drive_fulfilment(orders, placed):
    order, _ = placed

    with pytest.raises(OrderAccessDenied):
        orders.confirm_payment(OWNER, order.id, "card")
    with pytest.raises(OrderAccessDenied):
        orders.ship_order(OWNER, order.id, "T")
    with pytest.raises(OrderAccessDenied):
        orders.complete_order(OWNER, order.id)


def test_owner_cancels_and_stock_is_restored(orders, placed, stock_of):
    order, product = placed
    assert stock_of(product.id) == 3

    cancelled = orders.cancel_order(OWNER, order.id)

    assert cancelled.status == OrderStatus.CANCELLED
    assert stock_of(product.id) == 5


def test_admin_cancels_processing_order(orders, placed, stock_of):
    order, product = placed
    orders.confirm_payment(ADMIN, order.id, "card")

    orders.cancel_order(ADMIN, order.id)

    assert stock_of(product.id) == 5


def test_stranger_cannot_cancel(orders, placed, stock_of):
    order, product = placed

    with pytest.raises(OrderAccessDenied):
        orders.cancel_order(STRANGER, order.id)

    assert stock_of(product.id) == 3


def test_shipped_order_cannot_be_cancelled(orders, placed, stock_of):
    order, product = placed
    orders.confirm_payment(ADMIN, order.id, "card")
    orders.ship_order(ADMIN, order.id, "T")

    with pytest.raises(InvalidOrderStatusTransition):
        orders.cancel_order(ADMIN, order.id)

    assert stock_of(product.id) == 3


def test_cancelling_twice_does_not_restock_twice(orders, placed, stock_of):
    order, product = placed
    orders.cancel_order(OWNER, order.id)

    with pytest.raises(InvalidOrderStatusTransition):
        orders.cancel_order(OWNER, order.id)

    assert stock_of(product.id) == 5


def test_payment_webhook_success(orders, placed):
    order, _ = placed

    updated = orders.handle_payment_webhook(order.id, succeeded=True, payment_method="paypal")

    assert updated.status == OrderStatus.PROCESSING
    assert updated.payment_method == "paypal"


def test_payment_webhook_failure_cancels_and_restocks(orders, placed, stock_of):
    order, product = placed

    updated = orders.handle_payment_webhook(order.id, succeeded=False)

    assert updated.status == OrderStatus.CANCELLED
    assert stock_of(product.id) == 5


def test_payment_webhook_for_unknown_order(orders):
    with pytest.raises(OrderNotFound):
        orders.handle_payment_webhook(404, succeeded=True)


def test_get_order_access(orders, placed):
    order, _ = placed

    assert orders.get_order(OWNER, order.id).id == order.id
    assert orders.get_order(ADMIN, order.id).id == order.id
    with pytest.raises(OrderAccessDenied):
        orders.get_order(STRANGER, order.id)
    with pytest.raises(OrderNotFound):
        orders.get_order(ADMIN, 404)


def test_list_orders_scoped_by_role(uow, orders, placed, make_product):
    order, _ = placed
    other = make_product()
    CartService(uow).add_item(STRANGER.user_id, other.id, 1)
    theirs = orders.checkout(STRANGER.user_id, shipping_address_id=2)

    assert [o.id for o in orders.list_orders(OWNER)] == [order.id]
    assert {o.id for o in orders.list_orders(ADMIN)} == {order.id, theirs.id}

    orders.cancel_order(STRANGER, theirs.id)
    assert [o.id for o in orders.list_orders(ADMIN, status=OrderStatus.CANCELLED)] == [theirs.id]


def test_failure_notice_after_payment_is_rejected(orders, placed, stock_of, notifier):
    order, product = placed
    orders.confirm_payment(ADMIN, order.id, "card")

    with pytest.raises(InvalidOrderStatusTransition):
        orders.handle_payment_webhook(order.id, succeeded=False)

    assert orders.get_order(ADMIN, order.id).status == OrderStatus.PROCESSING
    assert stock_of(product.id) == 3
    assert notifier.sent[-1][2] == "processing"
