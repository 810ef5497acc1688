# storefront/repos/unit_of_work.py
"""
Unit of Work: one atomic scope binding all aggregate repositories.

    order = uow.execute(lambda repos: ...)

`execute` commits when the operation returns and rolls back when it raises,
re-raising the error unchanged. `reader()` gives the same repositories for
read-only reporting paths that do not need the atomic scope.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storefront.domain.errors import NestedUnitOfWork, PersistenceFailure
from storefront.repos.base import Repositories
from storefront.repos.cart_repo import CartRepo
from storefront.repos.coupon_repo import CouponRepo
from storefront.repos.memory import (
    InMemoryCartRepository,
    InMemoryCouponRepository,
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryStore,
)
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class UnitOfWork(Protocol):
    def execute(self, operation: Callable[[Repositories], T]) -> T: ...

    def reader(self): ...


class _ScopeGuard(threading.local):
    active = False

    @contextmanager
    def enter(self) -> Iterator[None]:
        if self.active:
            raise NestedUnitOfWork()
        self.active = True
        try:
            yield
        finally:
            self.active = False


class SqlAlchemyUnitOfWork:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self._guard = _ScopeGuard()

    @staticmethod
    def _bind(session: Session) -> Repositories:
        return Repositories(
            carts=CartRepo(session),
            products=ProductRepo(session),
            coupons=CouponRepo(session),
            orders=OrderRepo(session),
        )

    def execute(self, operation: Callable[[Repositories], T]) -> T:
        with self._guard.enter():
            session = self.session_factory()
            try:
                with session.begin():
                    result = operation(self._bind(session))
                return result
            except SQLAlchemyError as exc:
                logger.exception("Transaction failed and was rolled back")
                raise PersistenceFailure() from exc
            finally:
                session.close()

    @contextmanager
    def reader(self) -> Iterator[Repositories]:
        session = self.session_factory()
        try:
            yield self._bind(session)
        except SQLAlchemyError as exc:
            logger.exception("Read-only query failed")
            raise PersistenceFailure() from exc
        finally:
            # nothing read here is ever committed
            session.close()


class InMemoryUnitOfWork:
    """
    Write scopes are serialized by the store lock and run on a private copy of
    the store, published on commit and dropped on rollback. Readers only ever
    see committed state.
    """

    def __init__(self, store: InMemoryStore | None = None):
        self.store = store or InMemoryStore()
        self._guard = _ScopeGuard()

    @staticmethod
    def _bind(store: InMemoryStore) -> Repositories:
        return Repositories(
            carts=InMemoryCartRepository(store),
            products=InMemoryProductRepository(store),
            coupons=InMemoryCouponRepository(store),
            orders=InMemoryOrderRepository(store),
        )

    def execute(self, operation: Callable[[Repositories], T]) -> T:
        with self._guard.enter(), self.store.lock:
            working = self.store.copy()
            result = operation(self._bind(working))
            self.store.publish(working)
            return result

    @contextmanager
    def reader(self) -> Iterator[Repositories]:
        yield self._bind(self.store.copy())
