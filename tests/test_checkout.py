from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from storefront.domain.errors import (
    CartIsEmpty,
    CouponExpired,
    CouponNotFound,
    CouponUsageLimitReached,
    OutOfStock,
    PersistenceFailure,
)
from storefront.domain.models import DiscountType, OrderStatus, Principal, Product, utcnow
from storefront.domain.patches import ProductPatch
from storefront.repos.base import OrderFilter
from storefront.repos.memory import InMemoryOrderRepository
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService
from storefront.services.stock_ledger import StockLedger
from storefront.utils.settings import Settings


@pytest.fixture
def carts(uow):
    return CartService(uow)


@pytest.fixture
def orders(uow, notifier):
    return OrderService(uow, notifier=notifier)


def _all_orders(uow):
    with uow.reader() as repos:
        return repos.orders.find(OrderFilter())


def test_checkout_totals_with_fixed_coupon(uow, carts, orders, make_product, make_coupon, stock_of):
    ten = make_product(price="10.00", quantity=5)
    five = make_product(price="5.00", quantity=5)
    make_coupon(code="FIVE", value="5.00")
    carts.add_item(1, ten.id, 2)
    carts.add_item(1, five.id, 1)
    carts.apply_coupon(1, "FIVE")

    order = orders.checkout(1, shipping_address_id=7)

    assert order.subtotal == Decimal("25.00")
    assert order.discount == Decimal("5.00")
    assert order.total_price == Decimal("20.00")
    assert order.status == OrderStatus.PENDING
    assert order.applied_coupon_code == "FIVE"
    assert order.shipping_address_id == 7
    assert [(i.product_id, i.quantity, i.price) for i in order.items] == [
        (ten.id, 2, Decimal("10.00")),
        (five.id, 1, Decimal("5.00")),
    ]
    assert stock_of(ten.id) == 3
    assert stock_of(five.id) == 4


def test_checkout_empties_cart_and_detaches_coupon(carts, orders, make_product, make_coupon):
    product = make_product()
    make_coupon(code="FIVE")
    carts.add_item(1, product.id, 1)
    carts.apply_coupon(1, "FIVE")

    orders.checkout(1, shipping_address_id=1)

    cart = carts.get_cart(1)
    assert cart.items == []
    assert cart.applied_coupon is None


def test_checkout_sends_notification_after_commit(carts, orders, notifier, make_product):
    product = make_product()
    carts.add_item(1, product.id, 1)

    order = orders.checkout(1, shipping_address_id=1)

    assert notifier.sent == [(1, order.id, "pending")]


def test_percentage_coupon_is_rounded_to_cents(carts, orders, make_product, make_coupon):
    product = make_product(price="3.33")
    make_coupon(code="P15", discount_type=DiscountType.PERCENTAGE, value="15")
    carts.add_item(1, product.id, 1)
    carts.apply_coupon(1, "P15")

    order = orders.checkout(1, shipping_address_id=1)

    assert order.discount == Decimal("0.50")  # 0.4995
    assert order.total_price == Decimal("2.83")


def test_empty_cart_checkout(uow, orders, notifier):
    with pytest.raises(CartIsEmpty):
        orders.checkout(1, shipping_address_id=1)

    assert _all_orders(uow) == []
    assert notifier.sent == []


def test_out_of_stock_rolls_back_earlier_reservations(uow, carts, orders, make_product, stock_of):
    plenty = make_product(quantity=10)
    scarce = make_product(name="Scarce", quantity=2)
    carts.add_item(1, plenty.id, 3)
    carts.add_item(1, scarce.id, 2)
    # someone else bought one in the meantime
    uow.execute(lambda repos: repos.products.update(scarce.id, ProductPatch(quantity=1)))

    with pytest.raises(OutOfStock) as exc:
        orders.checkout(1, shipping_address_id=1)

    assert exc.value.product_name == "Scarce"
    assert stock_of(plenty.id) == 10
    assert stock_of(scarce.id) == 1
    assert _all_orders(uow) == []
    assert len(carts.get_cart(1).items) == 2


def test_failure_after_reservation_restores_stock(uow, carts, orders, make_product, stock_of, monkeypatch):
    product = make_product(quantity=5)
    carts.add_item(1, product.id, 2)

    def boom(self, order):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(InMemoryOrderRepository, "create", boom)
    monkeypatch.setattr(OrderRepo, "create", boom)

    with pytest.raises(RuntimeError, match="insert failed"):
        orders.checkout(1, shipping_address_id=1)

    assert stock_of(product.id) == 5
    assert carts.get_cart(1).items[0].quantity == 2


def test_database_errors_become_persistence_failure(sql_uow, monkeypatch):
    carts = CartService(sql_uow)
    orders = OrderService(sql_uow)
    product = sql_uow.execute(
        lambda repos: repos.products.create(
            Product(id=None, name="Mug", sku="MUG-1", price=Decimal("4.00"), quantity=3)
        )
    )
    carts.add_item(1, product.id, 1)

    def lost_connection(self, order):
        raise OperationalError("INSERT INTO orders", {}, Exception("connection lost"))

    monkeypatch.setattr(OrderRepo, "create", lost_connection)

    with pytest.raises(PersistenceFailure) as exc:
        orders.checkout(1, shipping_address_id=1)

    assert isinstance(exc.value.__cause__, OperationalError)
    with sql_uow.reader() as repos:
        assert repos.products.get(product.id).quantity == 3


def test_order_keeps_price_at_purchase(uow, carts, orders, make_product):
    product = make_product(price="10.00")
    carts.add_item(1, product.id, 1)
    order = orders.checkout(1, shipping_address_id=1)

    uow.execute(lambda repos: repos.products.update(product.id, ProductPatch(price=Decimal("99.00"))))

    stored = orders.get_order(Principal(user_id=1), order.id)
    assert stored.items[0].price == Decimal("10.00")
    assert stored.total_price == Decimal("10.00")


def test_coupon_expired_after_apply_aborts_checkout(uow, carts, orders, make_product, make_coupon, stock_of):
    product = make_product(quantity=2)
    make_coupon(code="SOON", expires_in=timedelta(hours=1))
    carts.add_item(1, product.id, 1)
    carts.apply_coupon(1, "SOON")

    later = OrderService(uow, clock=lambda: utcnow() + timedelta(hours=2))
    with pytest.raises(CouponExpired):
        later.checkout(1, shipping_address_id=1)

    assert stock_of(product.id) == 2
    assert carts.get_cart(1).applied_coupon == "SOON"


def test_coupon_deleted_after_apply_aborts_checkout(uow, carts, orders, make_product, make_coupon):
    product = make_product()
    coupon = make_coupon(code="GONE")
    carts.add_item(1, product.id, 1)
    carts.apply_coupon(1, "GONE")
    uow.execute(lambda repos: repos.coupons.soft_delete(coupon.id))

    with pytest.raises(CouponNotFound):
        orders.checkout(1, shipping_address_id=1)


def test_usage_count_untouched_by_default(uow, carts, orders, make_product, make_coupon):
    product = make_product()
    coupon = make_coupon(code="ONCE", usage_limit=1)
    carts.add_item(1, product.id, 1)
    carts.apply_coupon(1, "ONCE")

    orders.checkout(1, shipping_address_id=1)

    with uow.reader() as repos:
        assert repos.coupons.get(coupon.id).usage_count == 0


def test_usage_counting_when_enabled(uow, carts, make_product, make_coupon):
    orders = OrderService(uow, settings=Settings(count_coupon_usage=True))
    product = make_product()
    coupon = make_coupon(code="ONCE", usage_limit=1)
    carts.add_item(1, product.id, 1)
    carts.apply_coupon(1, "ONCE")

    orders.checkout(1, shipping_address_id=1)

    with uow.reader() as repos:
        assert repos.coupons.get(coupon.id).usage_count == 1
    carts.add_item(1, product.id, 1)
    with pytest.raises(CouponUsageLimitReached):
        carts.apply_coupon(1, "ONCE")


def test_order_items_keep_name_and_sku_at_purchase(uow, carts, orders, make_product):
    product = make_product(name="Blue Mug", sku="MUG-BLUE")
    carts.add_item(1, product.id, 1)
    order = orders.checkout(1, shipping_address_id=1)

    uow.execute(
        lambda repos: repos.products.update(product.id, ProductPatch(name="Teal Mug", sku="MUG-TEAL"))
    )

    item = orders.get_order(Principal(user_id=1), order.id).items[0]
    assert item.product_name == "Blue Mug"
    assert item.sku == "MUG-BLUE"


def test_stock_is_reserved_in_product_id_order(carts, orders, make_product, monkeypatch):
    first = make_product(name="First")
    second = make_product(name="Second")
    carts.add_item(1, second.id, 1)
    carts.add_item(1, first.id, 2)

    reserved = []
    real_reserve = StockLedger.reserve

    def recording_reserve(self, product_id, quantity):
        reserved.append(product_id)
        return real_reserve(self, product_id, quantity)

    monkeypatch.setattr(StockLedger, "reserve", recording_reserve)

    order = orders.checkout(1, shipping_address_id=1)

    assert reserved == [first.id, second.id]
    # the order still lists its lines the way the cart did
    assert [(i.product_id, i.quantity) for i in order.items] == [(second.id, 1), (first.id, 2)]
