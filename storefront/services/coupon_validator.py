# storefront/services/coupon_validator.py
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable

from storefront.domain.errors import CouponExpired, CouponNotFound, CouponUsageLimitReached
from storefront.domain.models import Coupon, DiscountType, to_money, utcnow
from storefront.repos.base import CouponRepository

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount: Decimal
    grand_total: Decimal


def compute_totals(subtotal: Decimal, discount: Decimal) -> Totals:
    """The discount is reported as computed; only the grand total is floored at zero."""
    subtotal = to_money(subtotal)
    discount = to_money(discount)
    return Totals(subtotal=subtotal, discount=discount, grand_total=max(subtotal - discount, ZERO))


class CouponValidator:
    def __init__(self, coupons: CouponRepository, clock: Callable[[], datetime] = utcnow):
        self.coupons = coupons
        self.clock = clock

    def check(self, coupon: Coupon) -> Coupon:
        if coupon.deleted_at is not None:
            raise CouponNotFound(coupon.code)
        if coupon.is_expired(self.clock()):
            raise CouponExpired(coupon.code)
        if coupon.is_exhausted:
            raise CouponUsageLimitReached(coupon.code)
        return coupon

    def validate(self, code: str) -> Coupon:
        """
        Looks the code up and checks it, in order: exists, active and not
        past expiry, usage below the limit. The first failing check wins.
        """
        coupon = self.coupons.get_by_code(code)
        if coupon is None:
            raise CouponNotFound(code)
        return self.check(coupon)

    @staticmethod
    def discount_for(coupon: Coupon, subtotal: Decimal) -> Decimal:
        if coupon.discount_type == DiscountType.FIXED:
            return to_money(coupon.discount_value)
        if coupon.discount_type == DiscountType.PERCENTAGE:
            return to_money(subtotal * coupon.discount_value / Decimal(100))
        return ZERO
