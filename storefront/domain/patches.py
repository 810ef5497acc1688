# storefront/domain/patches.py
"""
Partial updates accepted by the repositories.

Each patch lists exactly the fields that may change after creation; ids,
order items and captured prices are not among them. Only fields that
were explicitly set are applied (`changes()`).
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storefront.domain.models import DiscountType, OrderStatus


class _Patch(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)

    def is_empty(self) -> bool:
        return not self.model_fields_set


class ProductPatch(_Patch):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    quantity: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def _no_nulls(self):
        for name in self.model_fields_set:
            if name != "description" and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class CouponPatch(_Patch):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    expiry_date: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, ge=0)
    usage_count: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def _no_nulls(self):
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class OrderPatch(_Patch):
    status: Optional[OrderStatus] = None
    tracking_number: Optional[str] = Field(None, max_length=50)
    payment_method: Optional[str] = Field(None, max_length=50)
