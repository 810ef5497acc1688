# storefront/api/routers/products.py
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from storefront.api.deps import get_product_service, require_admin
from storefront.domain.models import Principal
from storefront.domain.patches import ProductPatch
from storefront.domain.schemas import ProductCreate, ProductOut, ProductPage
from storefront.repos.base import ProductFilter
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductPage)
def list_products(
    search: Optional[str] = Query(None, max_length=100),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    in_stock: bool = Query(False),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    svc: ProductService = Depends(get_product_service),
):
    filters = ProductFilter(
        search=search,
        min_price=min_price,
        max_price=max_price,
        in_stock_only=in_stock,
        offset=offset,
        limit=limit,
    )
    return svc.list_products(filters)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, svc: ProductService = Depends(get_product_service)):
    return ProductOut.model_validate(svc.get_product(product_id))


@router.post("", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductCreate,
    _: Principal = Depends(require_admin),
    svc: ProductService = Depends(get_product_service),
):
    return ProductOut.model_validate(svc.create_product(payload))


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    patch: ProductPatch,
    _: Principal = Depends(require_admin),
    svc: ProductService = Depends(get_product_service),
):
    return ProductOut.model_validate(svc.update_product(product_id, patch))


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    _: Principal = Depends(require_admin),
    svc: ProductService = Depends(get_product_service),
):
    svc.delete_product(product_id)
    return Response(status_code=204)
