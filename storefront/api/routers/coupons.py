# storefront/api/routers/coupons.py
from typing import List

from fastapi import APIRouter, Depends, Response

from storefront.api.deps import get_coupon_service, require_admin
from storefront.domain.patches import CouponPatch
from storefront.domain.schemas import CouponCreate, CouponOut
from storefront.services.coupon_service import CouponService

# coupon management is admin only; shoppers apply codes through /cart/coupon
router = APIRouter(prefix="/coupons", tags=["coupons"], dependencies=[Depends(require_admin)])


@router.post("", response_model=CouponOut, status_code=201)
def create_coupon(payload: CouponCreate, svc: CouponService = Depends(get_coupon_service)):
    return CouponOut.model_validate(svc.create_coupon(payload))


@router.get("", response_model=List[CouponOut])
def list_coupons(svc: CouponService = Depends(get_coupon_service)):
    return [CouponOut.model_validate(c) for c in svc.list_coupons()]


@router.get("/{coupon_id}", response_model=CouponOut)
def get_coupon(coupon_id: int, svc: CouponService = Depends(get_coupon_service)):
    return CouponOut.model_validate(svc.get_coupon(coupon_id))


@router.patch("/{coupon_id}", response_model=CouponOut)
def update_coupon(coupon_id: int, patch: CouponPatch, svc: CouponService = Depends(get_coupon_service)):
    return CouponOut.model_validate(svc.update_coupon(coupon_id, patch))


@router.delete("/{coupon_id}", status_code=204)
def delete_coupon(coupon_id: int, svc: CouponService = Depends(get_coupon_service)):
    svc.delete_coupon(coupon_id)
    return Response(status_code=204)
