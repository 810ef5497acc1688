# storefront/repos/coupon_repo.py
from dataclasses import replace
from enum import Enum
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.coupon import CouponModel
from storefront.domain.errors import CouponCodeExists, CouponNotFound
from storefront.domain.models import Coupon, utcnow
from storefront.domain.patches import CouponPatch
from storefront.repos.mappers import to_coupon


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _live():
        return select(CouponModel).where(CouponModel.deleted_at.is_(None))

    def _model(self, coupon_id: int, lock: bool = False) -> Optional[CouponModel]:
        stmt = self._live().where(CouponModel.id == coupon_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def get(self, coupon_id: int) -> Optional[Coupon]:
        model = self._model(coupon_id)
        return to_coupon(model) if model else None

    def get_for_update(self, coupon_id: int) -> Optional[Coupon]:
        model = self._model(coupon_id, lock=True)
        return to_coupon(model) if model else None

    def get_by_code(self, code: str) -> Optional[Coupon]:
        model = self.db.execute(self._live().where(CouponModel.code == code)).scalar_one_or_none()
        return to_coupon(model) if model else None

    def list(self) -> List[Coupon]:
        stmt = self._live().order_by(CouponModel.id)
        return [to_coupon(m) for m in self.db.execute(stmt).scalars().all()]

    def create(self, coupon: Coupon) -> Coupon:
        coupon.ensure_usage_within_limit()
        model = CouponModel(
            code=coupon.code,
            discount_type=coupon.discount_type.value,
            discount_value=coupon.discount_value,
            expiry_date=coupon.expiry_date,
            usage_limit=coupon.usage_limit,
            usage_count=coupon.usage_count,
            is_active=coupon.is_active,
        )
        try:
            with self.db.begin_nested():
                self.db.add(model)
                self.db.flush()
        except IntegrityError as exc:
            raise CouponCodeExists(coupon.code) from exc
        return to_coupon(model)

    def update(self, coupon_id: int, patch: CouponPatch) -> Coupon:
        model = self._model(coupon_id)
        if model is None:
            raise CouponNotFound(str(coupon_id))

        # checked on the merged record; the table constraint is the backstop
        replace(to_coupon(model), **patch.changes()).ensure_usage_within_limit()

        try:
            with self.db.begin_nested():
                for name, value in patch.changes().items():
                    setattr(model, name, value.value if isinstance(value, Enum) else value)
                self.db.flush()
        except IntegrityError as exc:
            if patch.code is None:
                raise
            raise CouponCodeExists(patch.code) from exc
        return to_coupon(model)

    def soft_delete(self, coupon_id: int) -> None:
        model = self._model(coupon_id)
        if model is None:
            raise CouponNotFound(str(coupon_id))
        model.deleted_at = utcnow()
        self.db.flush()
