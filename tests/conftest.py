import itertools
from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.data.database import init_db, make_engine, make_session_factory
from storefront.domain.models import Coupon, DiscountType, Product, utcnow
from storefront.repos.unit_of_work import InMemoryUnitOfWork, SqlAlchemyUnitOfWork
from storefront.utils.settings import Settings

_skus = itertools.count(1)


class RecordingNotifier:
    """Stands in for NotificationService; keeps what would have been enqueued."""

    def __init__(self):
        self.sent = []

    def send_order_notification(self, user_id: int, order_id: int, status: str) -> None:
        self.sent.append((user_id, order_id, status))


def _sqlite_uow(tmp_path):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'storefront.db'}")
    engine = make_engine(settings)
    init_db(engine, attempts=1)
    return engine, SqlAlchemyUnitOfWork(make_session_factory(engine))


@pytest.fixture(params=["memory", "sqlite"])
def uow(request, tmp_path):
    """Every service test runs against both storage implementations."""
    if request.param == "memory":
        yield InMemoryUnitOfWork()
        return

    engine, sql_uow = _sqlite_uow(tmp_path)
    yield sql_uow
    engine.dispose()


@pytest.fixture
def sql_uow(tmp_path):
    engine, sql_uow = _sqlite_uow(tmp_path)
    yield sql_uow
    engine.dispose()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_product(uow):
    def _make(name="Widget", price="10.00", quantity=10, sku=None):
        product = Product(
            id=None,
            name=name,
            sku=sku or f"SKU-{next(_skus)}",
            price=Decimal(price),
            quantity=quantity,
        )
        return uow.execute(lambda repos: repos.products.create(product))

    return _make


@pytest.fixture
def make_coupon(uow):
    def _make(
        code="SAVE5",
        discount_type=DiscountType.FIXED,
        value="5.00",
        expires_in=timedelta(days=7),
        usage_limit=10,
        usage_count=0,
        is_active=True,
    ):
        coupon = Coupon(
            id=None,
            code=code,
            discount_type=discount_type,
            discount_value=Decimal(value),
            expiry_date=utcnow() + expires_in,
            usage_limit=usage_limit,
            usage_count=usage_count,
            is_active=is_active,
        )
        return uow.execute(lambda repos: repos.coupons.create(coupon))

    return _make


@pytest.fixture
def stock_of(uow):
    def _stock(product_id):
        with uow.reader() as repos:
            return repos.products.get(product_id).quantity

    return _stock
