from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.domain.errors import CouponExpired, CouponNotFound, CouponUsageLimitReached
from storefront.domain.models import Coupon, DiscountType, utcnow
from storefront.services.coupon_validator import CouponValidator, compute_totals


def _coupon(discount_type, value):
    return Coupon(
        id=1,
        code="X",
        discount_type=discount_type,
        discount_value=Decimal(value),
        expiry_date=utcnow() + timedelta(days=1),
    )


def test_validate_returns_applicable_coupon(uow, make_coupon):
    make_coupon(code="OK10")

    with uow.reader() as repos:
        coupon = CouponValidator(repos.coupons).validate("OK10")

    assert coupon.code == "OK10"


def test_unknown_code(uow):
    with uow.reader() as repos:
        with pytest.raises(CouponNotFound):
            CouponValidator(repos.coupons).validate("NOPE")


def test_deleted_coupon_is_not_found(uow, make_coupon):
    coupon = make_coupon(code="GONE")
    uow.execute(lambda repos: repos.coupons.soft_delete(coupon.id))

    with uow.reader() as repos:
        with pytest.raises(CouponNotFound):
            CouponValidator(repos.coupons).validate("GONE")


def test_past_expiry(uow, make_coupon):
    make_coupon(code="OLD", expires_in=timedelta(days=-1))

    with uow.reader() as repos:
        with pytest.raises(CouponExpired):
            CouponValidator(repos.coupons).validate("OLD")


def test_inactive_counts_as_expired(uow, make_coupon):
    make_coupon(code="OFF", is_active=False)

    with uow.reader() as repos:
        with pytest.raises(CouponExpired):
            CouponValidator(repos.coupons).validate("OFF")


def test_usage_limit_reached(uow, make_coupon):
    make_coupon(code="USED", usage_limit=2, usage_count=2)

    with uow.reader() as repos:
        with pytest.raises(CouponUsageLimitReached):
            CouponValidator(repos.coupons).validate("USED")


def test_expiry_is_checked_before_usage(uow, make_coupon):
    make_coupon(code="BOTH", expires_in=timedelta(days=-1), usage_limit=1, usage_count=1)

    with uow.reader() as repos:
        with pytest.raises(CouponExpired):
            CouponValidator(repos.coupons).validate("BOTH")


def test_validator_uses_injected_clock(uow, make_coupon):
    make_coupon(code="SOON", expires_in=timedelta(hours=1))
    later = lambda: utcnow() + timedelta(hours=2)

    with uow.reader() as repos:
        with pytest.raises(CouponExpired):
            CouponValidator(repos.coupons, clock=later).validate("SOON")


def test_fixed_discount():
    assert CouponValidator.discount_for(_coupon(DiscountType.FIXED, "5.00"), Decimal("25.00")) == Decimal("5.00")


def test_percentage_discount_rounds_half_up_to_cents():
    discount = CouponValidator.discount_for(_coupon(DiscountType.PERCENTAGE, "15"), Decimal("10.10"))

    assert discount == Decimal("1.52")  # 1.515


def test_totals_floor_grand_total_at_zero():
    totals = compute_totals(Decimal("8.00"), Decimal("10.00"))

    assert totals.discount == Decimal("10.00")
    assert totals.grand_total == Decimal("0.00")


@pytest.mark.parametrize(
    "subtotal, discount, expected",
    [("25.00", "5.00", "20.00"), ("0.00", "0.00", "0.00"), ("3.00", "3.00", "0.00")],
)
def test_totals(subtotal, discount, expected):
    totals = compute_totals(Decimal(subtotal), Decimal(discount))

    assert totals.grand_total == Decimal(expected)
    assert totals.grand_total == max(totals.subtotal - totals.discount, Decimal("0"))
