# storefront/repos/product_repo.py
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import ProductNotFound, ProductSkuExists
from storefront.domain.models import Product, utcnow
from storefront.domain.patches import ProductPatch
from storefront.repos.base import ProductFilter
from storefront.repos.mappers import to_product


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _live():
        return select(ProductModel).where(ProductModel.deleted_at.is_(None))

    @staticmethod
    def _filtered(stmt, filters: ProductFilter):
        if filters.search:
            like = f"%{filters.search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(ProductModel.name).like(like),
                    func.lower(ProductModel.sku).like(like),
                )
            )
        if filters.min_price is not None:
            stmt = stmt.where(ProductModel.price >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(ProductModel.price <= filters.max_price)
        if filters.in_stock_only:
            stmt = stmt.where(ProductModel.quantity > 0)
        return stmt

    def _model(self, product_id: int, lock: bool = False) -> Optional[ProductModel]:
        stmt = self._live().where(ProductModel.id == product_id)
        if lock:
            # rows already in the identity map may predate the lock
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def get(self, product_id: int) -> Optional[Product]:
        model = self._model(product_id)
        return to_product(model) if model else None

    def get_for_update(self, product_id: int) -> Optional[Product]:
        # SELECT ... FOR UPDATE: concurrent reservations of the same row queue here
        model = self._model(product_id, lock=True)
        return to_product(model) if model else None

    def find(self, filters: ProductFilter) -> List[Product]:
        stmt = (
            self._filtered(self._live(), filters)
            .order_by(ProductModel.id)
            .offset(filters.offset)
            .limit(filters.limit)
        )
        return [to_product(m) for m in self.db.execute(stmt).scalars().all()]

    def count(self, filters: ProductFilter) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(ProductModel).where(ProductModel.deleted_at.is_(None)),
            filters,
        )
        return self.db.execute(stmt).scalar_one()

    def create(self, product: Product) -> Product:
        model = ProductModel(
            name=product.name,
            description=product.description,
            sku=product.sku,
            price=product.price,
            quantity=product.quantity,
        )
        try:
            with self.db.begin_nested():
                self.db.add(model)
                self.db.flush()
        except IntegrityError as exc:
            raise ProductSkuExists(product.sku) from exc
        return to_product(model)

    def update(self, product_id: int, patch: ProductPatch) -> Product:
        model = self._model(product_id)
        if model is None:
            raise ProductNotFound(product_id)

        try:
            with self.db.begin_nested():
                for name, value in patch.changes().items():
                    setattr(model, name, value)
                self.db.flush()
        except IntegrityError as exc:
            if patch.sku is None:
                raise
            raise ProductSkuExists(patch.sku) from exc
        return to_product(model)

    def soft_delete(self, product_id: int) -> None:
        model = self._model(product_id)
        if model is None:
            raise ProductNotFound(product_id)
        model.deleted_at = utcnow()
        self.db.flush()
