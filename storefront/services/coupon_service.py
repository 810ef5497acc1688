# storefront/services/coupon_service.py
from typing import List

from storefront.domain.errors import CouponNotFound
from storefront.domain.models import Coupon
from storefront.domain.patches import CouponPatch
from storefront.domain.schemas import CouponCreate
from storefront.repos.unit_of_work import UnitOfWork
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CouponService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def create_coupon(self, payload: CouponCreate) -> Coupon:
        """Raises CouponCodeExists when the code is taken, even by a deleted coupon."""
        coupon = Coupon(
            id=None,
            code=payload.code,
            discount_type=payload.discount_type,
            discount_value=payload.discount_value,
            expiry_date=payload.expiry_date,
            usage_limit=payload.usage_limit,
            is_active=payload.is_active,
        )
        created = self.uow.execute(lambda repos: repos.coupons.create(coupon))
        logger.info(f"Coupon '{created.code}' created ({created.discount_type.value} {created.discount_value})")
        return created

    def get_coupon(self, coupon_id: int) -> Coupon:
        with self.uow.reader() as repos:
            coupon = repos.coupons.get(coupon_id)
        if coupon is None:
            raise CouponNotFound(str(coupon_id))
        return coupon

    def list_coupons(self) -> List[Coupon]:
        with self.uow.reader() as repos:
            return repos.coupons.list()

    def update_coupon(self, coupon_id: int, patch: CouponPatch) -> Coupon:
        if patch.is_empty():
            return self.get_coupon(coupon_id)
        updated = self.uow.execute(lambda repos: repos.coupons.update(coupon_id, patch))
        logger.info(f"Coupon {coupon_id} updated: {sorted(patch.changes())}")
        return updated

    def delete_coupon(self, coupon_id: int) -> None:
        self.uow.execute(lambda repos: repos.coupons.soft_delete(coupon_id))
        logger.info(f"Coupon {coupon_id} deleted")
