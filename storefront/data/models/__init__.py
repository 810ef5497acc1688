# import every model so SQLAlchemy registers it on Base.metadata

from storefront.data.models.product import ProductModel
from storefront.data.models.coupon import CouponModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel

__all__ = [
    "ProductModel",
    "CouponModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
]
