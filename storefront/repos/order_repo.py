# storefront/repos/order_repo.py
from enum import Enum
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import OrderNotFound
from storefront.domain.models import Order, utcnow
from storefront.domain.patches import OrderPatch
from storefront.repos.base import OrderFilter
from storefront.repos.mappers import to_order


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def _model(self, order_id: int, lock: bool = False) -> Optional[OrderModel]:
        stmt = select(OrderModel).where(OrderModel.id == order_id).options(selectinload(OrderModel.items))
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def create(self, order: Order) -> Order:
        """Inserts the order and all of its items in one flush."""
        model = OrderModel(
            user_id=order.user_id,
            status=order.status.value,
            subtotal=order.subtotal,
            discount=order.discount,
            total_price=order.total_price,
            applied_coupon_code=order.applied_coupon_code,
            shipping_address_id=order.shipping_address_id,
            payment_method=order.payment_method,
            created_at=order.created_at,
            items=[
                OrderItemModel(
                    product_id=i.product_id,
                    quantity=i.quantity,
                    price=i.price,
                    product_name=i.product_name,
                    sku=i.sku,
                )
                for i in order.items
            ],
        )
        self.db.add(model)
        self.db.flush()
        return to_order(model)

    def get(self, order_id: int) -> Optional[Order]:
        model = self._model(order_id)
        return to_order(model) if model else None

    def get_for_update(self, order_id: int) -> Optional[Order]:
        model = self._model(order_id, lock=True)
        return to_order(model) if model else None

    def find(self, filters: OrderFilter) -> List[Order]:
        stmt = select(OrderModel).options(selectinload(OrderModel.items))
        if filters.user_id is not None:
            stmt = stmt.where(OrderModel.user_id == filters.user_id)
        if filters.status is not None:
            stmt = stmt.where(OrderModel.status == filters.status.value)
        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        stmt = stmt.offset(filters.offset).limit(filters.limit)
        return [to_order(m) for m in self.db.execute(stmt).scalars().all()]

    def update(self, order_id: int, patch: OrderPatch) -> Order:
        model = self._model(order_id)
        if model is None:
            raise OrderNotFound(order_id)

        for name, value in patch.changes().items():
            setattr(model, name, value.value if isinstance(value, Enum) else value)
        model.updated_at = utcnow()
        self.db.flush()
        return to_order(model)
